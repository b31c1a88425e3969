# SPDX-License-Identifier: MIT
"""Textual front end for the nodewatch dashboard."""
