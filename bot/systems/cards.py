# bot/systems/cards.py
"""
Card engines for the gambling games.

Nothing here touches the ledger: every function takes (or builds) cards
and returns an outcome with the net wallet delta the caller should apply.
"""
from __future__ import annotations

import enum
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

SUITS = ("♠️", "♥️", "♦️", "♣️")
RANKS = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")
_FACE_VALUES = {"J": 11, "Q": 12, "K": 13, "A": 14}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    @property
    def blackjack_value(self) -> int:
        if self.rank == "A":
            return 11
        if self.rank in ("J", "Q", "K"):
            return 10
        return int(self.rank)

    @property
    def poker_value(self) -> int:
        return _FACE_VALUES.get(self.rank) or int(self.rank)


def new_deck(rng: Optional[random.Random] = None) -> List[Card]:
    """Shuffled 52-card deck; draw with ``deck.pop()``."""
    deck = [Card(rank, suit) for suit in SUITS for rank in RANKS]
    (rng or random).shuffle(deck)
    return deck


def blackjack_score(cards: Sequence[Card]) -> int:
    score = sum(c.blackjack_value for c in cards)
    aces = sum(1 for c in cards if c.rank == "A")
    while score > 21 and aces:
        score -= 10
        aces -= 1
    return score


def is_natural(cards: Sequence[Card]) -> bool:
    return len(cards) == 2 and blackjack_score(cards) == 21


class PokerHand(str, enum.Enum):
    ROYAL_FLUSH = "royalFlush"
    STRAIGHT_FLUSH = "straightFlush"
    FOUR_OF_A_KIND = "fourOfAKind"
    FULL_HOUSE = "fullHouse"
    FLUSH = "flush"
    STRAIGHT = "straight"
    THREE_OF_A_KIND = "threeOfAKind"
    TWO_PAIR = "twoPair"
    PAIR = "pair"
    HIGH_CARD = "highCard"

    @property
    def label(self) -> str:
        return _HAND_LABELS[self]


_HAND_LABELS = {
    PokerHand.ROYAL_FLUSH: "👑 Royal Flush",
    PokerHand.STRAIGHT_FLUSH: "💎 Straight Flush",
    PokerHand.FOUR_OF_A_KIND: "🎯 Four of a Kind",
    PokerHand.FULL_HOUSE: "🏠 Full House",
    PokerHand.FLUSH: "🌊 Flush",
    PokerHand.STRAIGHT: "📈 Straight",
    PokerHand.THREE_OF_A_KIND: "🎲 Three of a Kind",
    PokerHand.TWO_PAIR: "👥 Two Pair",
    PokerHand.PAIR: "👫 One Pair",
    PokerHand.HIGH_CARD: "🃏 High Card",
}


def _is_straight(cards: Sequence[Card]) -> bool:
    values = {c.poker_value for c in cards}
    if len(values) != 5:
        return False
    if max(values) - min(values) == 4:
        return True
    # wheel: A-2-3-4-5
    return values == {14, 2, 3, 4, 5}


def evaluate_poker_hand(cards: Sequence[Card]) -> PokerHand:
    """Category only; ties are not broken by kickers."""
    if len(cards) != 5:
        raise ValueError("poker hands have exactly 5 cards")
    counts = sorted(Counter(c.rank for c in cards).values(), reverse=True)
    flush = len({c.suit for c in cards}) == 1
    straight = _is_straight(cards)

    if straight and flush:
        if {c.rank for c in cards} == {"10", "J", "Q", "K", "A"}:
            return PokerHand.ROYAL_FLUSH
        return PokerHand.STRAIGHT_FLUSH
    if counts[0] == 4:
        return PokerHand.FOUR_OF_A_KIND
    if counts[0] == 3 and counts[1] == 2:
        return PokerHand.FULL_HOUSE
    if flush:
        return PokerHand.FLUSH
    if straight:
        return PokerHand.STRAIGHT
    if counts[0] == 3:
        return PokerHand.THREE_OF_A_KIND
    if counts[0] == 2 and counts[1] == 2:
        return PokerHand.TWO_PAIR
    if counts[0] == 2:
        return PokerHand.PAIR
    return PokerHand.HIGH_CARD


# --------------------------------------------------------------------------
# Game outcomes
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class CoinFlipResult:
    choice: str
    landed: str
    net: int

    @property
    def won(self) -> bool:
        return self.choice == self.landed


def play_coin_flip(bet: int, choice: str, payout: float, rng: Optional[random.Random] = None) -> CoinFlipResult:
    choice = choice.lower()
    if choice not in ("heads", "tails"):
        raise ValueError("choice must be heads or tails")
    landed = "heads" if (rng or random).random() < 0.5 else "tails"
    net = int(bet * payout) if landed == choice else -bet
    return CoinFlipResult(choice, landed, net)


@dataclass(frozen=True)
class PokerResult:
    cards: List[Card]
    hand: PokerHand
    multiplier: float
    net: int


def poker_net(bet: int, multiplier: float) -> int:
    return int(bet * multiplier) - bet if multiplier > 0 else -bet


def play_poker(bet: int, payouts: Dict[str, float], rng: Optional[random.Random] = None) -> PokerResult:
    deck = new_deck(rng)
    cards = [deck.pop() for _ in range(5)]
    hand = evaluate_poker_hand(cards)
    mult = payouts.get(hand.value, 0.0)
    return PokerResult(cards, hand, mult, poker_net(bet, mult))


class BlackjackOutcome(str, enum.Enum):
    BLACKJACK = "blackjack"
    WIN = "win"
    DEALER_BUST = "dealer_bust"
    PUSH = "push"
    LOSS = "loss"
    BUST = "bust"

    @property
    def label(self) -> str:
        return {
            "blackjack": "🎉 **BLACKJACK! You Win!**",
            "win": "🎉 **You Win!**",
            "dealer_bust": "🎉 **Dealer Busts! You Win!**",
            "push": "🤝 **Push! Tie Game!**",
            "loss": "💸 **Dealer Wins!**",
            "bust": "💸 **Bust! You Lose!**",
        }[self.value]


@dataclass
class BlackjackHand:
    """One open blackjack round. Mutated by hit/stand until ``outcome`` is set."""

    bet: int
    payout: float
    deck: List[Card]
    player: List[Card] = field(default_factory=list)
    dealer: List[Card] = field(default_factory=list)
    outcome: Optional[BlackjackOutcome] = None

    @classmethod
    def deal(cls, bet: int, payout: float, rng: Optional[random.Random] = None) -> "BlackjackHand":
        deck = new_deck(rng)
        hand = cls(bet=bet, payout=payout, deck=deck)
        hand.player = [deck.pop(), deck.pop()]
        hand.dealer = [deck.pop(), deck.pop()]
        if is_natural(hand.player):
            hand.outcome = BlackjackOutcome.BLACKJACK
        return hand

    @property
    def player_score(self) -> int:
        return blackjack_score(self.player)

    @property
    def dealer_score(self) -> int:
        return blackjack_score(self.dealer)

    @property
    def finished(self) -> bool:
        return self.outcome is not None

    def hit(self) -> None:
        if self.finished:
            raise ValueError("hand already finished")
        self.player.append(self.deck.pop())
        if self.player_score > 21:
            self.outcome = BlackjackOutcome.BUST

    def stand(self) -> None:
        if self.finished:
            raise ValueError("hand already finished")
        while self.dealer_score < 17:
            self.dealer.append(self.deck.pop())
        player, dealer = self.player_score, self.dealer_score
        if dealer > 21:
            self.outcome = BlackjackOutcome.DEALER_BUST
        elif player > dealer:
            self.outcome = BlackjackOutcome.WIN
        elif player == dealer:
            self.outcome = BlackjackOutcome.PUSH
        else:
            self.outcome = BlackjackOutcome.LOSS

    @property
    def net(self) -> int:
        if self.outcome is None:
            raise ValueError("hand still open")
        if self.outcome in (BlackjackOutcome.BLACKJACK, BlackjackOutcome.WIN, BlackjackOutcome.DEALER_BUST):
            return int(self.bet * self.payout)
        if self.outcome is BlackjackOutcome.PUSH:
            return 0
        return -self.bet
