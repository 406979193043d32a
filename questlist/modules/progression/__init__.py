"""Progression engine: rewards, level curve, aggregates, quests and claims."""
