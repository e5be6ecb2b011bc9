"""Module-level constants for the tam-filesystem MCP server."""

# Configuration
CONFIG_FILENAMES = (".tam-filesystem-mcp.json", ".tam-filesystem-mcp.yaml")

# File handling
ALLOWED_EXTENSIONS = (".md", ".txt", ".json")
DEFAULT_EXTENSION = ".md"
ALTERNATE_EXTENSION = ".txt"

# Limits
MAX_FRONTMATTER_BYTES = 10_240

# Frontmatter fields that may declare template variables (first present wins)
VARIABLE_FIELDS = ("prompt-vars", "variables", "vars")
VARIABLE_TYPES = ("string", "number", "boolean", "date")

# Discovery scores
EXACT_MATCH_SCORE = 1.0
ALIAS_MATCH_SCORE = 0.95
ALIAS_SUGGESTION_WEIGHT = 0.9
AUTO_APPLY_CONFIDENCE = 0.8

# Rate limiting
RATE_LIMIT_MAX_REQUESTS = 100
RATE_LIMIT_WINDOW_SECONDS = 60.0

# Logging
LOG_LEVEL = "INFO"
