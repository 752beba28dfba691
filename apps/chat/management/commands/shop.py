"""Interactive terminal chat with the shopping assistant."""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING, Any

from django.core.management.base import BaseCommand, CommandError

from core.config import get_settings
from services.catalog.base import ProductRecord
from services.catalog.factory import AdapterNotFoundError
from services.chat.factory import create_chat_service
from services.chat.session import ConversationSession
from services.commerce import (
    BuyerValidationError,
    CheckoutFlow,
    CheckoutStep,
    RetryPolicy,
    create_rye_client,
)
from services.commerce.types import REQUIRED_BUYER_FIELDS
from services.tools.interaction import CONFIRMED, DENIED

if TYPE_CHECKING:
    from argparse import ArgumentParser

    from core.config import Settings
    from services.chat.service import ChatService
    from services.chat.stream import StreamEvent
    from services.chat.types import ToolInvocation
    from services.commerce.types import CheckoutIntent


EXIT_WORDS = {"exit", "quit", "q"}

BUY_COMMAND = re.compile(r"buy\s+(\d+)", re.IGNORECASE)

BUYER_PROMPTS: dict[str, str] = {
    "firstName": "First name",
    "lastName": "Last name",
    "email": "Email",
    "phone": "Phone",
    "address1": "Address",
    "city": "City",
    "province": "State / province",
    "country": "Country code",
    "postalCode": "Postal code",
}


async def ask(prompt: str) -> str:
    """Read a line without blocking the event loop."""
    return (await asyncio.to_thread(input, prompt)).strip()


class Command(BaseCommand):
    """Chat in the terminal; ``buy <n>`` checks out product n of the last search."""

    help = "Chat with the shopping assistant in the terminal"

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add command options."""
        parser.add_argument(
            "--mock",
            action="store_true",
            help="Search the built-in sample catalog instead of Amazon",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Run the chat loop until the user quits."""
        settings = get_settings()
        try:
            service = create_chat_service(settings, catalog_source="mock" if options["mock"] else None)
        except (ValueError, AdapterNotFoundError) as e:
            raise CommandError(f"Chat is not available: {e}") from e

        asyncio.run(self._run(service, settings))

    async def _run(self, service: ChatService, settings: Settings) -> None:
        session = ConversationSession()
        products: list[dict[str, Any]] = []
        self.stdout.write("Type a message, 'buy <n>' to purchase a listed product, or 'exit' to quit.")

        try:
            while True:
                try:
                    line = await ask("You: ")
                except (EOFError, KeyboardInterrupt):
                    break
                if not line:
                    continue
                if line.lower() in EXIT_WORDS:
                    break
                command = BUY_COMMAND.fullmatch(line)
                if command:
                    if await self._buy(int(command.group(1)), products, session, settings):
                        products = await self._turn(service, session) or products
                    continue

                session.add_user_message(line)
                products = await self._turn(service, session) or products
        finally:
            await service.close()

        self.stdout.write("Goodbye!")

    async def _turn(self, service: ChatService, session: ConversationSession) -> list[dict[str, Any]]:
        """Stream a turn, answering manual tools until the assistant is done."""
        latest: list[dict[str, Any]] = []
        while True:
            self.stdout.write("Assistant: ", ending="")
            async for event in service.stream(session):
                latest = self._render(event, session) or latest

            pending = session.pending_tool_calls()
            if not pending:
                return latest
            for invocation in pending:
                session.add_tool_result(invocation.tool_call_id, await self._answer(invocation))

    def _render(self, event: StreamEvent, session: ConversationSession) -> list[dict[str, Any]]:
        """Print one event; return products if it carried a search result."""
        kind = event["type"]
        if kind == "text-delta":
            self.stdout.write(event["delta"], ending="")
        elif kind == "text-end":
            self.stdout.write("")
        elif kind == "error":
            self.stderr.write(event["errorText"])
        elif kind == "tool-output-error":
            self.stderr.write(event["errorText"])
        elif kind == "tool-output-available":
            tool_name = session.find_tool_invocation(event["toolCallId"]).tool_name
            return self._render_output(tool_name, event["output"], preliminary=event.get("preliminary", False))
        return []

    def _render_output(self, tool_name: str, output: Any, *, preliminary: bool) -> list[dict[str, Any]]:
        if tool_name == "searchProducts":
            if output.get("state") == "loading":
                self.stdout.write("\nSearching...")
                return []
            if preliminary:
                return []
            if output.get("message"):
                self.stdout.write(output["message"])
            products: list[dict[str, Any]] = output.get("products", [])
            for number, product in enumerate(products, start=1):
                badge = f" [{product['badge']}]" if product.get("badge") else ""
                self.stdout.write(
                    f"  {number}. {product['name']}{badge}\n"
                    f"     {product['price']} | {product['rating']}\n"
                    f"     {product['url']}"
                )
            return products

        if preliminary:
            return []
        if tool_name == "compareItems":
            comparison = output["comparison"]
            self.stdout.write(comparison["summary"])
            for category in comparison["categories"]:
                self.stdout.write(f"  {category['name']}: {category['winner']} ({category['explanation']})")
            self.stdout.write(f"Recommendation: {comparison['recommendation']}")
        elif tool_name == "suggestFollowups":
            for group, suggestions in output["followups"].items():
                if suggestions:
                    self.stdout.write(f"{group.capitalize()}: {', '.join(suggestions)}")
        return []

    async def _answer(self, invocation: ToolInvocation) -> str:
        """Ask the user for the output of a manual tool."""
        if invocation.tool_name == "askForConfirmation":
            message = (invocation.input or {}).get("message", "Confirm?")
            reply = await ask(f"{message} [y/N] ")
            return CONFIRMED if reply.lower() in {"y", "yes"} else DENIED
        if invocation.tool_name == "getLocation":
            return await ask("Where are you? ")
        return await ask(f"{invocation.tool_name}: ")

    async def _buy(
        self,
        number: int,
        products: list[dict[str, Any]],
        session: ConversationSession,
        settings: Settings,
    ) -> bool:
        """
        Run a checkout for product n of the latest search.

        Returns:
            True when the order was placed.
        """
        if not 1 <= number <= len(products):
            if products:
                self.stderr.write(f"Pick a product number between 1 and {len(products)}.")
            else:
                self.stderr.write("Search for products first.")
            return False
        product = ProductRecord.from_dict(products[number - 1])
        if not product.has_url:
            self.stderr.write("This product has no link to check out.")
            return False
        if not settings.rye.is_configured:
            self.stderr.write("Checkout is not configured (set RYE_API_KEY).")
            return False

        client = create_rye_client(settings.rye)

        def on_complete(bought: ProductRecord, intent: CheckoutIntent) -> None:
            session.record_order(bought.name, intent.id)

        flow = CheckoutFlow(
            client,
            product,
            on_complete=on_complete,
            offer_policy=RetryPolicy(
                interval=settings.checkout.offer_poll_interval,
                max_attempts=settings.checkout.max_poll_attempts,
            ),
            order_policy=RetryPolicy(
                interval=settings.checkout.order_poll_interval,
                max_attempts=settings.checkout.max_poll_attempts,
            ),
        )
        try:
            await self._checkout(flow)
        except (EOFError, KeyboardInterrupt):
            flow.cancel()
            self.stdout.write("Checkout cancelled.")
        finally:
            await client.close()
        return flow.step == CheckoutStep.COMPLETED

    async def _checkout(self, flow: CheckoutFlow) -> None:
        self.stdout.write(f"Buying: {flow.product.name} ({flow.product.price})")
        buyer: dict[str, str] = {}
        for field in REQUIRED_BUYER_FIELDS:
            buyer[field] = await ask(f"{BUYER_PROMPTS[field]}: ")
        buyer["address2"] = await ask("Address line 2 (optional): ")

        try:
            step = await flow.submit_buyer(buyer)
        except BuyerValidationError as e:
            self.stderr.write(str(e))
            flow.cancel()
            return

        if step != CheckoutStep.PAYMENT:
            self.stderr.write(flow.error or "Checkout could not continue.")
            flow.cancel()
            return

        if flow.offer is not None:
            self.stdout.write(
                f"Subtotal {flow.offer.subtotal.format()} + tax {flow.offer.tax.format()} "
                f"= total {flow.offer.total.format()}"
            )

        while flow.step == CheckoutStep.PAYMENT:
            token = await ask("Payment method token (blank to cancel): ")
            if not token:
                flow.cancel()
                self.stdout.write("Checkout cancelled.")
                return
            step = await flow.submit_payment(token)
            if step == CheckoutStep.PAYMENT:
                self.stderr.write(flow.error or "Payment failed.")

        if flow.step == CheckoutStep.COMPLETED:
            self.stdout.write(f"Order placed for {flow.product.name}!")
        elif flow.step == CheckoutStep.FAILED:
            self.stderr.write(f"{flow.error} ({flow.failure_reason})")
