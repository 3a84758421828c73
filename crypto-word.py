import argparse
import logging
import sys
import threading
import time
from collections import defaultdict

import meshtastic.serial_interface
from meshtastic.tcp_interface import TCPInterface
from pubsub import pub

from crypto_word import (
    ConfigError,
    CryptoGameManager,
    MeshBridge,
    PuzzleEngine,
    SessionTable,
    load_game_config,
    load_market_catalog,
    load_settings,
)
from crypto_word_scores import ScoreStore

# -----------------------------
# Logging
# -----------------------------
DEBUG_ENABLED = False
CLEAN_LOGS = True

NOISE_PATTERNS = (
    "Error while parsing FromRadio",
    "Error parsing message with type 'meshtastic.protobuf.FromRadio'",
    "DecodeError",
    "Traceback",
    "meshtastic/stream_interface.py",
    "meshtastic/mesh_interface.py",
)


class _ProtoNoiseFilter(logging.Filter):
    def filter(self, rec: logging.LogRecord) -> bool:
        noisy = any(s in rec.getMessage() for s in NOISE_PATTERNS)
        return DEBUG_ENABLED or not noisy


_last_message_time = defaultdict(float)
_message_counts = defaultdict(int)
_rate_limit_seconds = 5.0


def clean_log(message, emoji="📝", show_always=False, rate_limit=True):
    """Emoji-prefixed console logging with simple repeat suppression."""
    message = str(message)
    if rate_limit and not DEBUG_ENABLED:
        message_key = f"{emoji}_{message[:50]}"
        current_time = time.time()
        if current_time - _last_message_time[message_key] < _rate_limit_seconds:
            _message_counts[message_key] += 1
            return
        if _message_counts[message_key] > 1:
            message += f" (suppressed {_message_counts[message_key]} similar messages)"
        _message_counts[message_key] = 0
        _last_message_time[message_key] = current_time

    if show_always or (CLEAN_LOGS and not DEBUG_ENABLED):
        logging.info(f"{emoji} {message}")
    else:
        logging.info(f"[Info] {message}")


# -----------------------------
# Radio connection
# -----------------------------
reset_event = threading.Event()


def on_connection_lost(interface=None, **kwargs):
    clean_log("Connection lost, scheduling reconnect", "🔌", show_always=True)
    reset_event.set()


def connect_interface(settings):
    """Return a Meshtastic interface: Wi-Fi TCP bridge first, then USB serial."""
    if settings.use_wifi and settings.wifi_host:
        clean_log(f"TCPInterface → {settings.wifi_host}:{settings.wifi_port}", "🔗", show_always=True)
        return TCPInterface(hostname=settings.wifi_host, portNumber=settings.wifi_port)
    if settings.serial_port:
        max_attempts = 10
        last_exc = None
        for attempt in range(1, max_attempts + 1):
            try:
                return meshtastic.serial_interface.SerialInterface(devPath=settings.serial_port)
            except Exception as e:
                last_exc = e
                wait = min(5, 1 + attempt)
                clean_log(
                    f"Attempt {attempt}/{max_attempts} failed to open {settings.serial_port}: {e} — retrying in {wait}s",
                    "⚠️",
                    show_always=True,
                    rate_limit=False,
                )
                time.sleep(wait)
        raise RuntimeError(f"Could not open serial device {settings.serial_port}: {last_exc}")
    clean_log("SerialInterface auto-detect …", "🔗", show_always=True)
    return meshtastic.serial_interface.SerialInterface()


def main(argv=None):
    global DEBUG_ENABLED, CLEAN_LOGS
    parser = argparse.ArgumentParser(description="Crypto Word puzzle bot for Meshtastic meshes")
    parser.add_argument("--config", default="config.json", help="bot settings file")
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    DEBUG_ENABLED = settings.debug
    CLEAN_LOGS = settings.clean_logs
    logging.basicConfig(
        level=logging.DEBUG if DEBUG_ENABLED else logging.INFO,
        format="%(message)s",
    )
    for lg in (logging.getLogger(), logging.getLogger("meshtastic")):
        lg.addFilter(_ProtoNoiseFilter())

    clean_log("Starting CRYPTO-WORD bot...", "🚀", show_always=True)
    try:
        difficulties = load_game_config(settings.game_config_path, clean_log=clean_log)
    except ConfigError as exc:
        clean_log(f"Failed to load game configuration: {exc}", "❌", show_always=True, rate_limit=False)
        return 1
    try:
        catalog = load_market_catalog(settings.market_config_path, clean_log=clean_log)
    except ConfigError as exc:
        clean_log(f"Failed to load market configuration: {exc}", "❌", show_always=True, rate_limit=False)
        return 1
    clean_log(f"Loaded {len(difficulties)} difficulty levels", "🧩", show_always=True)
    clean_log(f"Market has {len(catalog.themes)} themes and {len(catalog.powerups)} power-ups", "🛍️", show_always=True)

    game_manager = CryptoGameManager(
        engine=PuzzleEngine(difficulties),
        sessions=SessionTable(),
        scores=ScoreStore(settings.score_store_path),
        clean_log=clean_log,
        settings=settings,
        catalog=catalog,
    )
    bridge = MeshBridge(
        game_manager=game_manager,
        clean_log=clean_log,
        chunk_delay=settings.chunk_delay,
        max_chunk_length=settings.max_chunk_length,
    )

    interface = None
    while True:
        try:
            clean_log("Connecting to Meshtastic device...", "🔗", show_always=True)
            for handler, topic in ((bridge.on_receive, "meshtastic.receive.text"), (on_connection_lost, "meshtastic.connection.lost")):
                try:
                    pub.unsubscribe(handler, topic)
                except Exception:
                    pass
            if interface is not None:
                try:
                    interface.close()
                except Exception as exc:
                    clean_log(f"Error closing interface: {exc}", "⚠️")
            reset_event.clear()
            interface = connect_interface(settings)
            bridge.set_interface(interface)
            pub.subscribe(bridge.on_receive, "meshtastic.receive.text")
            pub.subscribe(on_connection_lost, "meshtastic.connection.lost")
            clean_log("Connection successful! Running until error or Ctrl+C.", "🟢", show_always=True)
            while not reset_event.is_set():
                time.sleep(1)
            raise OSError("Reset event triggered due to connection loss")
        except KeyboardInterrupt:
            clean_log("User interrupted the script. Shutting down.", "👋", show_always=True)
            break
        except (OSError, RuntimeError) as e:
            clean_log(f"Connection error: {e}. Reconnecting in 5s…", "⚠️", show_always=True, rate_limit=False)
            time.sleep(5)
    if interface is not None:
        try:
            interface.close()
        except Exception as exc:
            clean_log(f"Error closing interface: {exc}", "⚠️")
    return 0


if __name__ == "__main__":
    sys.exit(main())
