"""
Review Engine - spaced repetition scheduling across content categories.

Decides, for each learned item, when it must be shown again, how urgently,
and in what order, and runs review sessions over batches of due items.

Components:
- SM2Scheduler: next scheduling state from a quality rating
- mastery: due-ness, priority, and mastery tier classification
- review_queue: cross-category queue building, daily cap, urgency
- ReviewSessionController: review session state machine
"""

__version__ = "1.0.0"
