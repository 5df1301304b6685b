"""
HTTP surface for viewing history and configuring collection.
"""
