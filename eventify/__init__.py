"""Eventify — municipal event listing and registration service."""
