"""Core: content records, prompts, generation services, and session state.

HOW: ir.py holds the dataclasses every layer shares. prompts.py and
schemas.py describe what is sent to Gemini. generator.py performs one
feature per method; refinement.py and pipeline.py compose those methods.
session.py keeps the user's working state and persists it.
"""
