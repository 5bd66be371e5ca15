"""Decision core: review models, metadata extraction and the protected-label evaluator."""
