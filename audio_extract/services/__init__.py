"""Pipeline stages: classification, grouping, payloads, archive, transcripts."""
