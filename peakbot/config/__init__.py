"""
Configuration module.

Default parameters, YAML override loading and validation. Configuration is
always passed to components explicitly; nothing reads process-wide state.
"""
