"""
docchat command line.

    docchat chat [--thread-id ID]   interactive Q&A session on stdin/stdout
    docchat serve                   HTTP API (POST /chat)

Both exit with code 1 when OPENAI_API_KEY is missing or the vector index
cannot be found.
"""

import argparse
import sys

from dotenv import load_dotenv

load_dotenv()

from docchat.agents.chatbot import Chatbot, build_chatbot  # noqa: E402
from docchat.core.config import get_settings               # noqa: E402
from docchat.core.errors import ConfigurationError         # noqa: E402
from docchat.core.logging import configure_logging, get_logger  # noqa: E402

log = get_logger(__name__)

EXIT_COMMAND = "exit"


def run_session(chatbot: Chatbot, thread_id: str, stdin=None, stdout=None) -> None:
    """Read one question per line until 'exit' or EOF, printing each answer."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    print("--- RAG Chatbot ---", file=stdout)
    print(f"Ask questions based on your documents. Type '{EXIT_COMMAND}' to end.\n", file=stdout)

    while True:
        print("You: ", end="", file=stdout, flush=True)
        line = stdin.readline()
        if not line:
            break

        question = line.strip()
        if question.lower() == EXIT_COMMAND:
            print("Ending conversation. Goodbye!", file=stdout)
            return
        if not question:
            continue

        try:
            answer = chatbot.ask(question, thread_id)
        except Exception as exc:
            log.error("chat_turn_failed", thread_id=thread_id, error_type=type(exc).__name__)
            print("Please try again or check your question.\n", file=stdout)
            continue

        if answer:
            print(f"\nAI: {answer}\n", file=stdout)


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="docchat", description="Answer questions from a closed document corpus.")
    sub = parser.add_subparsers(dest="command", required=True)

    chat = sub.add_parser("chat", help="Interactive Q&A session.")
    chat.add_argument("--thread-id", default=None, help="Conversation thread to continue (default: CLI_THREAD_ID).")

    sub.add_parser("serve", help="Run the HTTP API.")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    configure_logging()

    if args.command == "serve":
        from docchat.main import serve
        return serve()

    settings = get_settings()
    try:
        chatbot = build_chatbot(settings)
    except ConfigurationError as exc:
        log.error("startup_failed", error=str(exc))
        print(f"Error starting chatbot: {exc}", file=sys.stderr)
        return 1

    run_session(chatbot, args.thread_id or settings.cli_thread_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
