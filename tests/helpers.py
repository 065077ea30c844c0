"""Card and seat builders shared by the test modules."""

from core.cards import Card, Deck, full_deck
from core.participant import Participant


def cards(*codes: str) -> list[Card]:
    """Build cards from short codes like '10H', 'AS'."""
    return [Card.from_string(code) for code in codes]


def stacked_deck(*codes: str) -> Deck:
    """A full deck with the given cards on top, in order."""
    top = cards(*codes)
    rest = [card for card in full_deck() if card not in top]
    return Deck.from_cards(top + rest)


def seat(name: str, *codes: str, dealer: bool = False) -> Participant:
    """A participant already holding the given cards."""
    participant = Participant.dealer(name) if dealer else Participant.player(name)
    for card in cards(*codes):
        participant.add_card(card)
    return participant
