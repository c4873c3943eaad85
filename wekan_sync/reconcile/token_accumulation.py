"""Token-accumulation run: add a fixed token cost to each card of a batch."""

import asyncio
import logging
from collections.abc import Sequence

from ..wekan.client import WekanClient
from ..wekan.exceptions import WekanAuthenticationError
from .fields import resolve_field, resolve_field_value
from .locator import locate_card, prioritize_list
from .models import CardDescriptor, TokenRunResult, TokenUpdate
from .tokens import accumulate_tokens, parse_token_value

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_FIELD = "Tokens Consumidos"


class TokenAccumulationRunner:
    """Adds ``per_card_tokens`` to the token field of every card in a batch.

    Each card is re-located before reading its current total, since the
    agent that consumed the tokens may have moved it in the meantime. A
    card that cannot be located, lacks the field or fails to update is
    logged and the batch moves on.
    """

    def __init__(
        self, client: WekanClient, field_name: str = DEFAULT_TOKEN_FIELD
    ) -> None:
        self.client = client
        self.field_name = field_name

    async def run(
        self,
        cards: Sequence[CardDescriptor],
        per_card_tokens: int,
        rejected_cards: int = 0,
    ) -> TokenRunResult:
        """Accumulate tokens on every card of the batch.

        Args:
            cards: Cards to update
            per_card_tokens: Tokens added to each card
            rejected_cards: Batch entries already dropped as malformed; they
                count as skipped

        Returns:
            Run counters and applied updates
        """
        result = TokenRunResult()

        if (
            isinstance(per_card_tokens, bool)
            or not isinstance(per_card_tokens, int)
            or per_card_tokens <= 0
        ):
            logger.info("No tokens to accumulate")
            return result

        result.total_cards += rejected_cards
        result.skipped_cards += rejected_cards

        if not cards:
            logger.info("No cards to accumulate tokens on")
            return result

        for descriptor in cards:
            result.total_cards += 1
            try:
                update = await self._process_card(descriptor, per_card_tokens)
            except WekanAuthenticationError:
                raise
            except Exception as e:
                logger.error(
                    f"Failed to update card {descriptor.id} ({descriptor.title}): {e}"
                )
                result.failed_cards += 1
                continue

            if update is None:
                result.skipped_cards += 1
            else:
                result.updated_cards += 1
                result.updates.append(update)

        return result

    async def _process_card(
        self, descriptor: CardDescriptor, per_card_tokens: int
    ) -> TokenUpdate | None:
        board_id = descriptor.board_id
        label = f"{descriptor.id} ({descriptor.title})"

        lists, definitions = await asyncio.gather(
            self.client.list_lists(board_id),
            self.client.get_custom_fields(board_id),
        )

        located = await locate_card(
            self.client,
            board_id,
            descriptor.id,
            prioritize_list(lists, descriptor.list_id),
        )
        if located is None:
            logger.error(f"Card {label} not found in any list of board {board_id}")
            return None

        definition = resolve_field(definitions, self.field_name)
        if definition is None:
            logger.error(f"Field '{self.field_name}' not found on board {board_id}")
            return None

        current = parse_token_value(
            resolve_field_value(located.card.custom_fields, definition)
        )
        new_value = accumulate_tokens(current, per_card_tokens)

        outcome = await self.client.update_card_field(
            board_id, located.list_id, descriptor.id, self.field_name, str(new_value)
        )
        if not outcome.success:
            logger.error(f"Card {label} not updated: {outcome.message}")
            return None

        logger.info(f"Card {label}: {current} + {per_card_tokens} = {new_value} tokens")
        return TokenUpdate(
            card_id=descriptor.id,
            title=descriptor.title,
            previous=current,
            added=per_card_tokens,
            new_value=new_value,
        )
