# Core infrastructure: logging, exceptions, validation, HTTP error handlers
