"""issues/ -- Issue domain: models, schemas, repository and actions.

Layer rule: issues/ may import from core/, auth/ and cache/.
It does NOT import from api/ or web/.
"""
