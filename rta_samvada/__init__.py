"""Ṛta-Samvāda: persistent examination state driven by examiner responses."""
