"""Balance and holder-count indexer for Substrate chains"""
