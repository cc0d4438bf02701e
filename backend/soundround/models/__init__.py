"""Stored Records — Round, Participant, Submission and Session value models."""
