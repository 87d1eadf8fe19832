"""Survey audio extractor.

Reads a survey-export CSV, finds the columns carrying base64 audio answers,
groups rows by respondent and row id, and writes a zip archive of the audio
files plus a table of the remaining answers.
"""

__version__ = "0.1.0"
