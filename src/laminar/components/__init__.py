"""Reusable building blocks shared by layers and projections."""
