"""
holds submodules related to structural variant junction records and the per-sample evidence counts
"""
__version__ = '1.0.0'
