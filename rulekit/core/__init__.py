"""
Core logic for rulekit: frontmatter parsing, discovery, manifest validation, installation.
"""
