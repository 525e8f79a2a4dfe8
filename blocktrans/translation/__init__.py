"""Provider backends, prompts and structure-preserving translators."""
