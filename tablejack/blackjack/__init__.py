"""Blackjack rules, the round controller and its console front-end."""
