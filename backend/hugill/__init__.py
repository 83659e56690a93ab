"""Hugill: Kubernetes pod watcher with remembered remote editor workspaces."""

__version__ = "0.1.0"
