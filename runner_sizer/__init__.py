"""Capacity planning for Gitpod Flex runners: subnet IP math, user allocation and share links."""

__version__ = "0.1.0"
