"""Tests for shared exceptions, service helpers and the health check."""
