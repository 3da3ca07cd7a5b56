"""
Change analysis: diff parsing, declaration indexing, attribution, impact and target generation.
"""
