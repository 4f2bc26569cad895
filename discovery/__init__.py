"""
Library discovery API: search over Solr, Summon and WorldCat with user lists,
tags, comments and search history.
"""
