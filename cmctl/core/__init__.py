"""Host resolution engine and topology models."""
