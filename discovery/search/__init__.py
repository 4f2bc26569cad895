"""
Query model and Solr query building
"""
from .query import Query, QueryGroup
from .param_bag import ParamBag
from .query_builder import QueryBuilder

__all__ = [
    "Query",
    "QueryGroup",
    "ParamBag",
    "QueryBuilder",
]
