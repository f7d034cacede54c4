"""Tests for the snapshot rotator."""
