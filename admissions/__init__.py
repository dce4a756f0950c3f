"""Admissions ruleset engine - attributes, scored rule trees and form evaluation."""

__version__ = "0.1.0"
