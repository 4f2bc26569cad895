"""
Search backend connectors
"""
from .solr import SolrConnector
from .summon import SummonConnector, SummonQueryBuilder
from .worldcat import WorldCatConnector, WorldCatQueryBuilder

__all__ = [
    "SolrConnector",
    "SummonConnector",
    "SummonQueryBuilder",
    "WorldCatConnector",
    "WorldCatQueryBuilder",
]
