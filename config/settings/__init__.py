"""Settings package for the Tourdesk booking service.

`base.py` holds configuration shared by every environment; `dev.py`,
`prod.py` and `test.py` extend it with environment specific overrides.
"""
