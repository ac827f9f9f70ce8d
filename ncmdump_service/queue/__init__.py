"""File queue core.

Contains:
- store: immutable deduplicated ``FileQueue``
- ingestion: drop / picker handling feeding the queue
- dispatcher: sequential batch dump with progress accounting
- controller: state container wiring the above to the notification bus
"""
