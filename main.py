#!/usr/bin/env python3
"""
AniForge - Main Entry Point

Resolve anime and manga titles on third-party providers: fuzzy catalog
matching, episode and chapter listing, and stream extraction with a
fallback relay.

Usage:
    python main.py search "Attack on Titan" --year 2013 --month 4
    python main.py episodes 16498/sub
    python main.py source 73645/sub --server HD-1

Requirements:
    pip install -e .
"""
import logging
import sys
from pathlib import Path

# Add current directory to path for imports
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def check_dependencies():
    """Check if required dependencies are installed."""
    required_modules = [
        ('rich', 'rich'),
        ('typer', 'typer'),
        ('httpx', 'httpx'),
        ('bs4', 'beautifulsoup4'),  # BeautifulSoup4 imports as 'bs4'
        ('yaml', 'PyYAML'),  # PyYAML imports as 'yaml'
    ]

    missing_modules = []

    for import_name, package_name in required_modules:
        try:
            __import__(import_name)
        except ImportError:
            missing_modules.append(package_name)

    if missing_modules:
        print("❌ Missing required dependencies:")
        for module in missing_modules:
            print(f"   • {module}")

        print("\n💡 Install with:")
        print(f"   pip install {' '.join(missing_modules)}")
        return False

    return True


def setup_logging():
    """Log to stderr and to the configured log file."""
    from core.config import Config

    config = Config()
    level = getattr(logging, str(config.log_level).upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stderr)]
    try:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)
    except OSError as e:
        print(f"⚠ Could not open log file {config.log_file}: {e}", file=sys.stderr)

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)


def main():
    """Main entry point for AniForge."""
    if not check_dependencies():
        return 1

    setup_logging()

    try:
        from cli.app import app

        # Typer exits the process with the command's status code
        app(prog_name="aniforge")
        return 0

    except KeyboardInterrupt:
        print("\n👋 AniForge stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Unexpected error in main: {e}")
        print(f"\n❌ An unexpected error occurred: {e}")
        print("Check logs/aniforge.log for details")
        return 1


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
