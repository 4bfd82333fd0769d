"""Game-agnostic building blocks: cards, decks, the shoe, hands and text I/O."""
