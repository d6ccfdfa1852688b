"""
CLI package for AniForge.

This package contains the command line interface built with Typer
and Rich on top of the Resolver facade.
"""
from .app import app as aniforge_app, create_resolver
from .tables import *

__all__ = ['aniforge_app', 'create_resolver']
