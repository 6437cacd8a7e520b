"""
Data layer - recipe models, the ingredient table, seed catalog and key-value storage.
"""
