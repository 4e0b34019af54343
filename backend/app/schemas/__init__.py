# Schemas package init
"""
NoteGist Backend — API Schemas Package
=======================================

What:  Pydantic models defining the JSON contract of the gateway.
"""
