"""Directive data models."""
