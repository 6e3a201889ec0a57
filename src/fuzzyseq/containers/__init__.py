"""
Containers for symbol sequences and the match records produced by the alignment engine.
"""
