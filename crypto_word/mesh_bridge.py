"""Route Meshtastic text packets to the crypto game and send the replies back."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from meshtastic import BROADCAST_ADDR, BROADCAST_NUM

from .games.game_manager import COMMANDS, CryptoGameManager
from .replies import PendingReply

TEXT_PORTNUMS = {"TEXT_MESSAGE_APP", "TEXT_MESSAGE", 1}


def split_message(text: str, max_len: int) -> List[str]:
    """Split on line boundaries so each chunk fits in one radio packet."""
    chunks: List[str] = []
    current = ""
    for line in (text or "").split("\n"):
        while len(line) > max_len:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:max_len])
            line = line[max_len:]
        candidate = f"{current}\n{line}" if current else line
        if current and len(candidate) > max_len:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def parse_node_id(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text == BROADCAST_ADDR:
        return BROADCAST_NUM
    if text.startswith("!"):
        try:
            return int(text[1:], 16)
        except ValueError:
            return None
    try:
        return int(text)
    except ValueError:
        return None


def chat_key_for(is_direct: bool, sender_id: Any, channel_idx: int) -> str:
    return f"dm:{sender_id}" if is_direct else f"ch:{channel_idx}"


class MeshBridge:
    """Glue between ``meshtastic.receive`` callbacks and ``CryptoGameManager``."""

    def __init__(
        self,
        *,
        game_manager: CryptoGameManager,
        clean_log: Callable[..., None],
        chunk_delay: float = 2.0,
        max_chunk_length: int = 200,
    ) -> None:
        self.game_manager = game_manager
        self.clean_log = clean_log
        self.chunk_delay = max(0.0, float(chunk_delay))
        self.max_chunk_length = max(40, int(max_chunk_length))
        self.interface: Optional[Any] = None

    def set_interface(self, interface: Any) -> None:
        self.interface = interface

    # ------------------------
    # Receive path
    # ------------------------
    def on_receive(self, packet: Optional[Dict[str, Any]] = None, interface: Any = None, **kwargs: Any) -> None:
        iface = interface or self.interface
        if not isinstance(packet, dict):
            return
        decoded = packet.get("decoded")
        if not isinstance(decoded, dict) or decoded.get("portnum") not in TEXT_PORTNUMS:
            return
        text = decoded.get("text")
        if text is None:
            payload = decoded.get("payload")
            text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else ""
        text = text.strip()
        if not text:
            return

        sender_id = packet.get("fromId") or packet.get("from")
        sender_num = parse_node_id(sender_id)
        my_num = self._my_node_num(iface)
        if sender_id is None or (my_num is not None and sender_num == my_num):
            return

        to_num = parse_node_id(packet.get("toId") or packet.get("to"))
        is_direct = to_num is not None and to_num != BROADCAST_NUM
        if is_direct and my_num is not None and to_num != my_num:
            return
        channel_idx = packet.get("channel") or 0

        chat_key, reply = self.dispatch(
            text=text,
            sender_id=sender_id,
            sender_short=self._short_name(iface, sender_id),
            is_direct=is_direct,
            channel_idx=channel_idx,
            reply_id=decoded.get("replyId"),
        )
        if reply is None:
            return
        if iface is None:
            self.clean_log("Cannot send reply: interface is None", "❌")
            return
        self.deliver(iface, reply, chat_key=chat_key, is_direct=is_direct, sender_id=sender_id, channel_idx=channel_idx)

    def dispatch(
        self,
        *,
        text: str,
        sender_id: Any,
        sender_short: str,
        is_direct: bool,
        channel_idx: int = 0,
        reply_id: Any = None,
    ) -> Tuple[str, Optional[PendingReply]]:
        chat_key = chat_key_for(is_direct, sender_id, channel_idx)
        sender_key = str(sender_id)

        if text.startswith("/"):
            parts = text.split(None, 1)
            cmd = parts[0].lower()
            if cmd not in COMMANDS:
                return chat_key, None
            arguments = parts[1] if len(parts) > 1 else ""
            reply = self.game_manager.handle_command(cmd, arguments, chat_key, sender_key, sender_short, is_direct)
            return chat_key, reply

        if not is_direct and not self._replies_to_puzzle(chat_key, reply_id):
            return chat_key, None
        return chat_key, self.game_manager.handle_guess(chat_key, sender_key, sender_short, text)

    def _replies_to_puzzle(self, chat_key: str, reply_id: Any) -> bool:
        if reply_id is None:
            return False
        ref = self.game_manager.message_ref(chat_key)
        if isinstance(ref, tuple):
            return reply_id in ref
        return ref is not None and ref == reply_id

    # ------------------------
    # Send path
    # ------------------------
    def deliver(
        self,
        interface: Any,
        reply: PendingReply,
        *,
        chat_key: str,
        is_direct: bool,
        sender_id: Any,
        channel_idx: int,
    ) -> None:
        delay = self.chunk_delay if reply.chunk_delay is None else max(reply.chunk_delay, 0)
        sent, _ = self._send(interface, reply.text, is_direct=is_direct, sender_id=sender_id, channel_idx=channel_idx, delay=delay)
        if not reply.board or not sent:
            return
        if delay:
            time.sleep(delay)
        _, board_ids = self._send(interface, reply.board, is_direct=is_direct, sender_id=sender_id, channel_idx=channel_idx, delay=delay)
        if reply.track_board and board_ids:
            self.game_manager.attach_message_ref(chat_key, tuple(board_ids))

    def _send(
        self,
        interface: Any,
        text: str,
        *,
        is_direct: bool,
        sender_id: Any,
        channel_idx: int,
        delay: float,
    ) -> Tuple[bool, List[Any]]:
        sent_any = False
        packet_ids: List[Any] = []
        chunks = split_message(text, self.max_chunk_length)
        for idx, chunk in enumerate(chunks):
            try:
                if is_direct:
                    packet = interface.sendText(chunk, destinationId=sender_id, wantAck=True)
                else:
                    packet = interface.sendText(chunk, destinationId=BROADCAST_ADDR, channelIndex=channel_idx, wantAck=False)
            except Exception as exc:
                self.clean_log(f"Error sending chunk {idx + 1}/{len(chunks)}: {exc}", "❌")
                break
            sent_any = True
            packet_id = getattr(packet, "id", None)
            if packet_id is not None:
                packet_ids.append(packet_id)
            if delay and idx < len(chunks) - 1:
                time.sleep(delay)
        return sent_any, packet_ids

    # ------------------------
    # Node helpers
    # ------------------------
    def _my_node_num(self, interface: Any) -> Optional[int]:
        for attr in ("myNode", "localNode"):
            node = getattr(interface, attr, None)
            num = getattr(node, "nodeNum", None)
            if isinstance(num, int):
                return num
        return None

    def _short_name(self, interface: Any, sender_id: Any) -> str:
        nodes = getattr(interface, "nodes", None) or {}
        node = nodes.get(sender_id) if isinstance(nodes, dict) else None
        if isinstance(node, dict):
            user = node.get("user") or {}
            name = user.get("shortName") or user.get("longName")
            if name:
                return str(name)
        return str(sender_id)


__all__ = ["MeshBridge", "split_message", "parse_node_id", "chat_key_for"]
