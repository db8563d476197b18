"""
Query builders shared by every request. Templates are compiled here, at
import, so a broken template bundle fails startup instead of a request.
"""

from app.query.lookups import LookupBuilder
from app.query.releases import ReleaseBuilder
from app.query.search import SearchBuilder
from app.query.templating import build_environment

_env = build_environment()

search_builder = SearchBuilder(_env)
release_builder = ReleaseBuilder(_env)
lookup_builder = LookupBuilder(_env)
