# lorachat/core/__init__.py
# Engine: codec, database, delivery tracking, connection supervision, sync.
