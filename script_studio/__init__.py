"""Script Studio: Gemini-powered YouTube script writing with timed subtitles.

WHY: Writing a narrated video takes many small creative steps (topic,
script, critique, rewrite, title, thumbnails, character art prompts,
subtitles). This package turns each step into a prompt for Gemini and
keeps the results in one working session.

HOW: api/ talks to Gemini, core/ builds prompts and runs the features,
formatters/ exports a session, server/ and cli.py are the two surfaces.
Subtitle timing lives in the separate timed_captions package.

RULES:
- Only api/ performs HTTP
- Surfaces never build prompts themselves; they call core.generator
"""

__version__ = "0.1.0"
