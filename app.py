# app.py

import html
import io
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from telegram import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    LinkPreviewOptions,
    Message,
    Update,
)
from telegram.constants import ParseMode
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)
from telegram.request import HTTPXRequest

from config import Settings
from domain.dtos import Page, SkinTonePalette
from domain.errors import ConfigurationError, InferenceError, ModelLoadError
from domain.palettes import PALETTES
from services.catalog import CatalogRepository
from services.classifier import ModelLoaderFactory, ModelProvider
from services.image_utils import bytes_to_rgb
from services.pipeline import AnalysisPipeline, AnalysisSession

log = logging.getLogger("app")

NO_PREVIEW = LinkPreviewOptions(is_disabled=True)


def render_palette(palette: SkinTonePalette, confidence: Optional[float] = None) -> str:
    head = f"<b>Your skin tone: {html.escape(palette.title)}</b>"
    if confidence is not None:
        head += f" ({confidence:.0%})"
    colors = " ".join(f"<code>{c.hex}</code>" for c in palette.target_colors)
    return f"{head}\n{html.escape(palette.description)}\nPalette: {colors}"


def render_page(page: Page) -> str:
    lines = [f"<b>Recommended products</b>, page {page.number}/{page.total_pages}"]
    offset = (page.number - 1) * page.size
    for i, sp in enumerate(page.items, start=offset + 1):
        p = sp.product
        price = f"{p.price_sign or '$'}{p.price or '0.00'}"
        name = html.escape(p.name or "Unnamed product")
        if p.product_link:
            name = f'<a href="{html.escape(p.product_link, quote=True)}">{name}</a>'
        lines.append(
            f"\n{i}. {name}\n"
            f"   {html.escape(p.brand or 'Brand')} · {price} · <b>{sp.match_percent}% match</b>\n"
            f"   Shade: {html.escape(sp.best_shade or '-')} <code>{html.escape(sp.best_hex)}</code>"
        )
    return "\n".join(lines)


def page_keyboard(session: AnalysisSession) -> Optional[InlineKeyboardMarkup]:
    cursor = session.cursor
    if cursor.total_pages <= 1:
        return None
    t = session.result_ticket
    row = []
    if cursor.current > 1:
        row.append(InlineKeyboardButton("‹", callback_data=f"page:{t}:prev"))
    for n in cursor.visible():
        label = f"·{n}·" if n == cursor.current else str(n)
        row.append(InlineKeyboardButton(label, callback_data=f"page:{t}:{n}"))
    if cursor.current < cursor.total_pages:
        row.append(InlineKeyboardButton("›", callback_data=f"page:{t}:next"))
    return InlineKeyboardMarkup([row])


class BotApp:
    """Composition root. Wires services and Telegram handlers."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.pool = ThreadPoolExecutor(max_workers=min(4, os.cpu_count() or 2))
        self.catalog = CatalogRepository(settings.catalog_source)
        loader = ModelLoaderFactory.create(settings.model_backend, settings.model_path)
        self.model = ModelProvider(loader, executor=self.pool)
        self.pipeline = AnalysisPipeline(self.model, self.catalog.all(), executor=self.pool)

    def session_for(self, context: ContextTypes.DEFAULT_TYPE) -> AnalysisSession:
        session = context.chat_data.get("session")
        if session is None:
            session = AnalysisSession(page_size=self.settings.page_size)
            context.chat_data["session"] = session
        return session

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.message.reply_html(
            "<b>Hi!</b> Send me a <u>well-lit photo of your face</u> and I will find your skin tone\n"
            "and the makeup shades that match it best.\n\n"
            "Commands: /help, /palettes"
        )

    async def help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        status = "ready" if self.model.ready else "loading (your first photo may take a little longer)"
        await update.message.reply_text(
            "Send a photo (or an image file). I classify your skin tone and rank catalog products\n"
            "whose shades are closest to it. Use the buttons under the list to browse pages.\n"
            "Sending a new photo replaces the previous result.\n\n"
            f"Skin-tone model: {status}"
        )

    async def palettes(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        text = "\n\n".join(render_palette(p) for _, p in sorted(PALETTES.items()))
        await update.message.reply_html(text)

    async def on_image(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.message
        if not message:
            return
        if message.photo:
            file = await context.bot.get_file(message.photo[-1].file_id)
        elif message.document:
            file = await context.bot.get_file(message.document.file_id)
        else:
            return

        bio = io.BytesIO()
        await file.download_to_memory(out=bio)
        session = self.session_for(context)

        try:
            image = bytes_to_rgb(bio.getvalue())
            result = await self.pipeline.analyze(session, image)
        except ModelLoadError:
            log.exception("Model unavailable")
            await message.reply_text("The skin-tone model is not available right now. Please try again in a minute.")
            return
        except InferenceError:
            log.exception("Image analysis failed")
            await message.reply_text("Could not analyze this image. Please try another photo.")
            return
        except ConfigurationError:
            log.critical("Model and palette registry disagree", exc_info=True)
            await message.reply_text("The service is misconfigured and cannot give recommendations right now.")
            return

        if result is None:
            # a newer photo from this chat is being analyzed; its reply wins
            return

        await message.reply_html(render_palette(result.palette, result.confidence))
        if not result.has_matches:
            await message.reply_text("No products in the catalog are a close match for this skin tone.")
            return
        await self.send_page(message, session)

    async def send_page(self, message: Message, session: AnalysisSession) -> None:
        await message.reply_html(
            render_page(session.current_page()),
            reply_markup=page_keyboard(session),
            link_preview_options=NO_PREVIEW,
        )

    async def on_page(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        session = self.session_for(context)
        try:
            _, ticket, action = query.data.split(":", 2)
            ticket_no = int(ticket)
        except ValueError:
            await query.answer()
            return
        if session.result is None or ticket_no != session.result_ticket:
            await query.answer("This list is out of date. Send a new photo.")
            return

        if action == "next":
            moved = session.next_page()
        elif action == "prev":
            moved = session.prev_page()
        elif action.isdigit():
            moved = session.go_to(int(action))
        else:
            moved = False

        await query.answer()
        if moved:
            await query.edit_message_text(
                render_page(session.current_page()),
                parse_mode=ParseMode.HTML,
                reply_markup=page_keyboard(session),
                link_preview_options=NO_PREVIEW,
            )

    async def warm_up(self, application: Application) -> None:
        try:
            await self.model.get()
        except ModelLoadError:
            # serving continues; the next photo retries the load
            log.error("Model warm-up failed; will retry on first request")

    def build_application(self) -> Application:
        request = HTTPXRequest(
            connect_timeout=20.0,
            read_timeout=40.0,
            write_timeout=20.0,
            pool_timeout=10.0,
            connection_pool_size=8,
        )

        app = (
            Application.builder()
            .token(self.settings.bot_token)
            .request(request)
            .concurrent_updates(True)
            .post_init(self.warm_up)
            .build()
        )
        app.add_handler(CommandHandler("start", self.start))
        app.add_handler(CommandHandler("help", self.help))
        app.add_handler(CommandHandler("palettes", self.palettes))
        app.add_handler(MessageHandler(filters.PHOTO | filters.Document.IMAGE, self.on_image))
        app.add_handler(CallbackQueryHandler(self.on_page, pattern=r"^page:"))
        return app


def main() -> None:
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if not settings.bot_token:
        log.error("BOT_TOKEN is not set")
        return
    bot = BotApp(settings)
    app = bot.build_application()
    log.info("Bot started")
    app.run_polling(close_loop=False)


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
