"""Infrastructure: configuration, persistence, media, storage and platform adapters."""
