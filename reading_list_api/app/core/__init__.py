"""Cross-cutting pieces: configuration, logging, errors, security, retries."""
