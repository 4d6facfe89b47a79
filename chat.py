"""
Command-line chat with automatic language detection, translation and summaries
"""
import argparse
import asyncio
import logging
import threading

from alexta.config import (
    DEFAULT_TARGET_LANGUAGE,
    OLLAMA_API_ENDPOINT,
    OPENAI_API_KEY,
    RETRY_UNAVAILABLE,
    SUPPORTED_LANGUAGES,
    TRANSLATOR_PROVIDER,
    Settings,
)
from alexta.core.builder import build_orchestrator
from alexta.core.exceptions import ValidationRejection
from alexta.core.models import DetectionStatus, StageStatus
from alexta.utils.unified_logger import setup_cli_logger, LogType

HELP_TEXT = """Commands:
  /translate <id> [lang]  translate a message (selected language by default)
  /summarize <id>         summarize a long English message
  /lang <code>            select the target language ({languages})
  /list                   show all messages
  /quit                   exit
Any other line is sent as a chat message."""


class ChatConsole:
    """Interactive loop on top of an EnrichmentOrchestrator"""

    def __init__(self, orchestrator, logger):
        self.orchestrator = orchestrator
        self.logger = logger
        self._last_seen = {}
        orchestrator.add_listener(self.on_message_changed)

    def on_message_changed(self, message):
        """Log the stages whose state changed since the last snapshot"""
        previous = self._last_seen.get(message.id)
        self._last_seen[message.id] = message
        data = {'message_id': message.id}

        if previous is None:
            self.logger.info(message.text, LogType.MESSAGE, data)
            return

        if previous.detection != message.detection and not message.detection.is_pending:
            if message.detection.status == DetectionStatus.RESOLVED:
                self.logger.info(message.detection.display_text, LogType.DETECTION, data)
                if self.orchestrator.should_offer_summary(message.id):
                    self.logger.info(f"Summary available: /summarize {message.id}", LogType.SUMMARY, data)
            else:
                self.logger.warning(f"unknown ({message.detection.reason})", LogType.DETECTION, data)

        if previous.translation != message.translation:
            self._log_stage(message.translation.status, message.translation.display_text,
                            LogType.TRANSLATION, data)

        if previous.summary != message.summary:
            self._log_stage(message.summary.status, message.summary.display_text,
                            LogType.SUMMARY, data)

    def _log_stage(self, status, text, log_type, data):
        if status == StageStatus.FAILED:
            self.logger.warning(text, log_type, data)
        elif status == StageStatus.IN_FLIGHT:
            self.logger.debug(text, log_type, data)
        else:
            self.logger.info(text, log_type, data)

    def _parse_id(self, value):
        try:
            return int(value)
        except (TypeError, ValueError):
            self.logger.warning(f"Invalid message id: {value}")
            return None

    def show_messages(self):
        messages = self.orchestrator.snapshots()
        if not messages:
            self.logger.info("No messages yet")
            return
        for message in messages:
            line = f"[{message.detection.display_text}] {message.text}"
            if message.translation.display_text:
                line += f"\n      -> {message.translation.display_text}"
            if message.summary.display_text:
                line += f"\n      summary: {message.summary.display_text}"
            self.logger.info(line, LogType.MESSAGE, {'message_id': message.id})

    def handle_line(self, line: str) -> bool:
        """
        Process one input line.

        Returns:
            False when the user asked to quit
        """
        line = line.strip()
        if not line:
            return True
        if not line.startswith('/'):
            self.orchestrator.submit(line)
            return True

        command, *params = line.split()
        if command in ('/quit', '/exit'):
            return False
        if command == '/help':
            codes = ", ".join(lang["code"] for lang in SUPPORTED_LANGUAGES)
            print(HELP_TEXT.format(languages=codes))
        elif command == '/list':
            self.show_messages()
        elif command == '/lang' and params:
            try:
                self.orchestrator.select_language(params[0])
                self.logger.info(f"Target language: {params[0]}")
            except ValidationRejection as e:
                self.logger.warning(e.message)
        elif command == '/translate' and params:
            message_id = self._parse_id(params[0])
            if message_id is not None:
                target = params[1] if len(params) > 1 else None
                if self.orchestrator.start_translation(message_id, target) is None:
                    self.logger.warning("Translation not possible for this message right now",
                                        LogType.TRANSLATION, {'message_id': message_id})
        elif command == '/summarize' and params:
            message_id = self._parse_id(params[0])
            if message_id is not None and self.orchestrator.start_summary(message_id) is None:
                self.logger.warning("Summary not offered for this message",
                                    LogType.SUMMARY, {'message_id': message_id})
        else:
            self.logger.warning(f"Unknown command: {line} (type /help)")
        return True


def start_input_reader(loop, queue, input_func=input):
    """
    Read stdin lines on a daemon thread and hand them to the event loop

    The thread never blocks interpreter exit, so Ctrl+C returns at once even
    while input() is waiting. End of input is signalled with None; the
    thread stops once the loop is closed.
    """
    def deliver(line):
        try:
            loop.call_soon_threadsafe(queue.put_nowait, line)
        except RuntimeError:
            # Loop closed while we were waiting for input
            return False
        return True

    def reader():
        while True:
            try:
                line = input_func("> ")
            except EOFError:
                deliver(None)
                return
            if not deliver(line):
                return

    thread = threading.Thread(target=reader, name="alexta-input", daemon=True)
    thread.start()
    return thread


async def run_chat(settings: Settings, logger, input_func=input, orchestrator=None):
    def on_progress(kind, key, event):
        label = f"Downloading {kind.value}" + (f" {key}" if key is not None else "")
        logger.info(label, LogType.DOWNLOAD_PROGRESS, {'loaded': event.loaded, 'total': event.total})

    if orchestrator is None:
        orchestrator = build_orchestrator(settings, on_progress=on_progress)
    console = ChatConsole(orchestrator, logger)
    logger.info("Alexta chat started. Type /help for commands.")

    lines = asyncio.Queue()
    start_input_reader(asyncio.get_running_loop(), lines, input_func)

    try:
        while True:
            line = await lines.get()
            if line is None or not console.handle_line(line):
                break
    finally:
        await orchestrator.close()


if __name__ == "__main__":
    language_codes = [lang["code"] for lang in SUPPORTED_LANGUAGES]

    parser = argparse.ArgumentParser(description="Chat with automatic language detection, translation and summaries.")
    parser.add_argument("-tl", "--target_lang", default=DEFAULT_TARGET_LANGUAGE, choices=language_codes,
                        help=f"Target language for translations (default: {DEFAULT_TARGET_LANGUAGE}).")
    parser.add_argument("-m", "--model", default=None, help="LLM model for translation and summaries.")
    parser.add_argument("--provider", default=TRANSLATOR_PROVIDER, choices=["ollama", "openai"],
                        help=f"LLM provider to use (default: {TRANSLATOR_PROVIDER}).")
    parser.add_argument("--api_endpoint", default=OLLAMA_API_ENDPOINT,
                        help=f"Ollama API endpoint (default: {OLLAMA_API_ENDPOINT}).")
    parser.add_argument("--openai_api_key", default=OPENAI_API_KEY, help="OpenAI API key (for the openai provider).")
    parser.add_argument("--no-download", action="store_true", help="Never pull missing models.")
    parser.add_argument("--retry-unavailable", action="store_true", default=RETRY_UNAVAILABLE,
                        help="Ask providers again after they reported a capability as unavailable.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output.")

    args = parser.parse_args()

    # Core modules log through stdlib logging; keep their output to warnings
    logging.basicConfig(level=logging.WARNING, format='%(levelname)s - %(name)s - %(message)s')

    logger = setup_cli_logger(enable_colors=not args.no_color)
    settings = Settings.from_cli_args(args)

    try:
        asyncio.run(run_chat(settings, logger))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.error(f"Chat stopped: {str(e)}", LogType.ERROR_DETAIL, {'details': str(e)})
