"""Gridrunner: parallel Selenium Grid scenario harness with Elasticsearch reporting."""
