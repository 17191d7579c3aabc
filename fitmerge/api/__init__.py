"""
API Module
==========
FastAPI surface over the combine pipeline.
"""
