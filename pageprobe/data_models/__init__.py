"""
pageprobe/data_models/__init__.py

Pydantic data models shared across the evaluation engine.
"""
