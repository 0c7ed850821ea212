# Pydantic request/response and wire models
