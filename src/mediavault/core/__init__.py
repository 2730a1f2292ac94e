"""Core scanning domain: models, ignore rules, resolvers and the scan pipeline."""
