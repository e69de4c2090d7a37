"""
Serving — FastAPI application and the pipeline it drives.

The HTTP layer is deliberately thin: it relays :class:`RagPipeline`
events as server-sent events and answer tokens as a text stream.
"""
