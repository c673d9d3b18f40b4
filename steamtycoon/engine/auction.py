"""Player order auction for Steam Tycoon."""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from steamtycoon.models.game_state import GameState

from steamtycoon.errors import Rejection, RejectionReason
from steamtycoon.models.game_state import AuctionState


@dataclass
class AuctionPayment:
    """What one player pays when the auction closes.

    Attributes:
        player_id: Paying player.
        bid: Player's last bid.
        paid: Amount actually paid.
        finish: 1-based position in the new play order.
    """

    player_id: str
    bid: int
    paid: int
    finish: int


class AuctionRound:
    """Runs the bidding that sets each turn's play order.

    Players bid in seat order and must beat the high bid. Passing drops a
    player out, except that the Turn Order holder may pass once without
    dropping. When one bidder remains the auction closes: the winner and the
    last dropout pay their full bid, the first dropout pays nothing and
    everyone else pays half, rounded up.

    Attributes:
        state: Reference to game state.
    """

    def __init__(self, state: "GameState") -> None:
        """Initialize auction handler.

        Args:
            state: The game state.
        """
        self.state = state

    @property
    def auction(self) -> AuctionState:
        if self.state.auction is None:
            raise RuntimeError("No auction is running")
        return self.state.auction

    def open(self) -> AuctionState:
        """Start a fresh auction in the current play order."""
        self.state.auction = AuctionState(bidders=self.state.active_player_ids())
        self.state.log_event("auction_open", {"bidders": list(self.state.auction.bidders)})
        return self.state.auction

    def get_valid_actions(self, player_id: str) -> list[dict[str, Any]]:
        """Get valid auction actions for a player.

        Args:
            player_id: The player to get actions for.

        Returns:
            List of valid action dictionaries.
        """
        auction = self.state.auction
        if auction is None or auction.current_bidder != player_id:
            return []
        player = self.state.players[player_id]
        actions = []
        minimum = auction.high_bid + 1
        if player.can_afford(minimum):
            actions.append(
                {
                    "type": "place_bid",
                    "min_amount": minimum,
                    "max_amount": player.cash,
                    "description": f"Bid ${minimum}-${player.cash}",
                }
            )
        actions.append(
            {
                "type": "pass_auction",
                "description": (
                    "Pass (Turn Order: stay in)"
                    if self._has_free_pass(player_id)
                    else "Pass (drop out)"
                ),
            }
        )
        return actions

    def _has_free_pass(self, player_id: str) -> bool:
        return (
            self.state.turn_order_holder == player_id
            and not self.auction.turn_order_pass_used
        )

    def check_bid(self, player_id: str, amount: Any) -> Rejection | None:
        """Check a bid without placing it."""
        if not isinstance(amount, int) or isinstance(amount, bool):
            return RejectionReason.INVALID_ARGUMENT, f"Bid must be a whole number, got {amount!r}"
        if amount <= self.auction.high_bid:
            return RejectionReason.INVALID_ARGUMENT, f"Bid must exceed ${self.auction.high_bid}"
        if not self.state.players[player_id].can_afford(amount):
            return RejectionReason.INSUFFICIENT_FUNDS, f"Cannot bid ${amount} with ${self.state.players[player_id].cash}"
        return None

    def place_bid(self, player_id: str, amount: int) -> None:
        """Record a validated bid and move to the next bidder."""
        auction = self.auction
        auction.bids[player_id] = amount
        auction.high_bidder = player_id
        auction.current_index = (auction.current_index + 1) % len(auction.bidders)
        self.state.log_event("bid", {"player": player_id, "amount": amount})

    def pass_turn(self, player_id: str) -> bool:
        """Pass for the current bidder.

        Returns:
            True if the player dropped out, False if the Turn Order free pass
            was used instead.
        """
        auction = self.auction
        if self._has_free_pass(player_id):
            auction.turn_order_pass_used = True
            auction.current_index = (auction.current_index + 1) % len(auction.bidders)
            self.state.log_event("auction_free_pass", {"player": player_id})
            return False

        index = auction.bidders.index(player_id)
        auction.bidders.pop(index)
        auction.dropouts.append(player_id)
        if auction.bidders:
            auction.current_index = index % len(auction.bidders)
        self.state.log_event("auction_drop", {"player": player_id})
        return True

    @property
    def is_complete(self) -> bool:
        """The auction closes when a single bidder remains."""
        return len(self.auction.bidders) <= 1

    def resolve(self) -> list[AuctionPayment]:
        """Collect payments and set the new play order.

        Returns:
            Payments in new play order.
        """
        auction = self.auction
        winner = auction.bidders[0] if auction.bidders else auction.dropouts.pop()
        dropouts = auction.dropouts
        payments = [AuctionPayment(winner, auction.bids.get(winner, 0), auction.bids.get(winner, 0), 1)]

        last = len(dropouts) - 1
        for position, player_id in enumerate(reversed(dropouts)):
            drop_index = last - position
            bid = auction.bids.get(player_id, 0)
            if drop_index == 0:
                paid = 0
            elif drop_index == last:
                paid = bid
            else:
                paid = math.ceil(bid / 2)
            payments.append(AuctionPayment(player_id, bid, paid, position + 2))

        for payment in payments:
            self.state.players[payment.player_id].remove_cash(payment.paid)

        eliminated = [pid for pid in self.state.play_order if self.state.players[pid].eliminated]
        self.state.play_order = [p.player_id for p in payments] + eliminated
        auction.bidders = []
        auction.resolved = True
        self.state.log_event(
            "auction_resolved",
            {
                "order": [p.player_id for p in payments],
                "payments": {p.player_id: p.paid for p in payments},
            },
        )
        return payments
