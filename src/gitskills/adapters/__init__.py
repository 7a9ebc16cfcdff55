"""Skill catalog adapters."""

from gitskills.adapters.topcoder import TopcoderSkillsAdapter

__all__ = ["TopcoderSkillsAdapter"]
