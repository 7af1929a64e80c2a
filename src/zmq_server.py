import json
import logging
import time
import uuid

import numpy as np
import sentry_sdk
import zmq

from config import DEFAULT_DARK_COLOR, DEFAULT_LIGHT_COLOR, PipelineSettings
from effects import registry
from engine.codec import DEFAULT_JPEG_QUALITY, encode_base64, load_image
from engine.export import export_result
from engine.frame import frame_size
from engine.pipeline import (
    apply_stage,
    flush_timing,
    get_stage_stats,
    render_with_settings,
)
from errors import DuotoneError
from security import validate_output_dir, validate_upload

logger = logging.getLogger(__name__)

# Rendered images travel back as base64 PNG; requests stay small.
MAX_REQUEST_BYTES = 1_048_576  # 1 MB


class ZMQServer:
    def __init__(self, settings: PipelineSettings | None = None):
        self.context = zmq.Context()
        self.socket = self.context.socket(zmq.REP)
        self.socket.setsockopt(zmq.MAXMSGSIZE, MAX_REQUEST_BYTES)
        self.port = self.socket.bind_to_random_port("tcp://127.0.0.1")
        # Dedicated ping socket — never blocked by a render in progress
        self.ping_socket = self.context.socket(zmq.REP)
        self.ping_socket.setsockopt(zmq.MAXMSGSIZE, 4096)
        self.ping_port = self.ping_socket.bind_to_random_port("tcp://127.0.0.1")
        # Auth token — prevents unauthorized access from other local processes
        self.token = str(uuid.uuid4())
        self.start_time = time.time()
        self.running = False
        self.settings = settings or PipelineSettings.from_env()
        self.last_render_ms = 0.0

    def reset_state(self):
        """Clear per-session state without closing sockets/context.

        Used by session-scoped test fixtures between tests.
        """
        flush_timing()
        self.last_render_ms = 0.0

    def _validate_token(self, message: dict) -> str | None:
        """Validate auth token. Returns error message or None if valid."""
        if message.get("_token") != self.token:
            return "invalid or missing auth token"
        return None

    def _make_ping_response(self, msg_id: str | None) -> dict:
        return {
            "id": msg_id,
            "status": "alive",
            "uptime_s": round(time.time() - self.start_time, 1),
            "last_render_ms": self.last_render_ms,
        }

    def handle_message(self, message: dict) -> dict:
        cmd = message.get("cmd")
        msg_id = message.get("id")

        token_err = self._validate_token(message)
        if token_err:
            return {"id": msg_id, "ok": False, "error": token_err}

        if cmd == "ping":
            return self._make_ping_response(msg_id)
        elif cmd == "shutdown":
            self.running = False
            return {"id": msg_id, "ok": True}
        elif cmd == "render":
            return self._guarded(self._handle_render, message, msg_id)
        elif cmd == "export":
            return self._guarded(self._handle_export, message, msg_id)
        elif cmd == "apply_stage":
            return self._guarded(self._handle_apply_stage, message, msg_id)
        elif cmd == "list_effects":
            return {"id": msg_id, "ok": True, "effects": registry.list_all()}
        elif cmd == "default_colors":
            return {
                "id": msg_id,
                "ok": True,
                "dark": DEFAULT_DARK_COLOR,
                "light": DEFAULT_LIGHT_COLOR,
            }
        elif cmd == "stage_stats":
            return {"id": msg_id, "ok": True, "stats": get_stage_stats()}
        elif cmd == "flush_state":
            flush_timing()
            return {"id": msg_id, "ok": True}
        else:
            return {"id": msg_id, "ok": False, "error": f"unknown: {cmd}"}

    def _guarded(self, handler, message: dict, msg_id: str | None) -> dict:
        """Run a handler; domain errors are reported, anything else is captured."""
        try:
            return handler(message, msg_id)
        except DuotoneError as e:
            return {"id": msg_id, "ok": False, "error": str(e)}
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error("%s handler error: %s", message.get("cmd"), type(e).__name__)
            return {"id": msg_id, "ok": False, "error": "Internal processing error"}

    def _load(self, message: dict) -> tuple[np.ndarray | None, str | None]:
        """Validate and decode message['path']. Returns (frame, error)."""
        path = message.get("path")
        if not path:
            return None, "missing path"
        errors = validate_upload(path)
        if errors:
            return None, "; ".join(errors)
        return load_image(path), None

    def _settings_for(self, message: dict) -> tuple[PipelineSettings | None, str | None]:
        try:
            settings = self.settings.with_overrides(message.get("settings"))
        except ValueError as e:
            return None, str(e)
        errors = settings.validate()
        if errors:
            return None, "; ".join(errors)
        return settings, None

    def _render(self, message: dict):
        frame, err = self._load(message)
        if err:
            return None, None, err
        settings, err = self._settings_for(message)
        if err:
            return None, None, err
        t0 = time.time()
        result = render_with_settings(frame, settings)
        self.last_render_ms = round((time.time() - t0) * 1000, 2)
        return result, settings, None

    def _handle_render(self, message: dict, msg_id: str | None) -> dict:
        result, settings, err = self._render(message)
        if err:
            return {"id": msg_id, "ok": False, "error": err}
        width, height = result.size
        return {
            "id": msg_id,
            "ok": True,
            "width": width,
            "height": height,
            "settings": settings.to_dict(),
            "original": encode_base64(result.resized),
            "normal": encode_base64(result.normal),
            "inverted": encode_base64(result.inverted),
            "render_ms": self.last_render_ms,
        }

    def _handle_export(self, message: dict, msg_id: str | None) -> dict:
        output_dir = message.get("output_dir")
        if not output_dir:
            return {"id": msg_id, "ok": False, "error": "missing output_dir"}
        out_errors = validate_output_dir(output_dir)
        if out_errors:
            return {"id": msg_id, "ok": False, "error": "; ".join(out_errors)}

        result, _, err = self._render(message)
        if err:
            return {"id": msg_id, "ok": False, "error": err}
        paths = export_result(
            result,
            output_dir,
            file_type=message.get("file_type", "png"),
            quality=message.get("quality", DEFAULT_JPEG_QUALITY),
        )
        return {"id": msg_id, "ok": True, "paths": paths}

    def _handle_apply_stage(self, message: dict, msg_id: str | None) -> dict:
        effect_id = message.get("effect_id")
        if not effect_id:
            return {"id": msg_id, "ok": False, "error": "missing effect_id"}
        if registry.get(effect_id) is None:
            return {"id": msg_id, "ok": False, "error": f"unknown effect: {effect_id}"}
        frame, err = self._load(message)
        if err:
            return {"id": msg_id, "ok": False, "error": err}
        output = apply_stage(frame, effect_id, message.get("params") or {})
        width, height = frame_size(output)
        return {
            "id": msg_id,
            "ok": True,
            "width": width,
            "height": height,
            "frame_data": encode_base64(output),
        }

    def run(self):
        self.running = True
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self.ping_socket, zmq.POLLIN)
        while self.running:
            events = dict(poller.poll(timeout=500))

            # Ping socket first (lightweight, never blocked)
            if self.ping_socket in events:
                try:
                    message = json.loads(self.ping_socket.recv())
                    if not isinstance(message, dict):
                        self.ping_socket.send_json(
                            {"ok": False, "error": "Invalid message format"}
                        )
                        continue
                    msg_id = message.get("id")
                    token_err = self._validate_token(message)
                    if token_err:
                        self.ping_socket.send_json(
                            {"id": msg_id, "ok": False, "error": token_err}
                        )
                    else:
                        self.ping_socket.send_json(self._make_ping_response(msg_id))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    self.ping_socket.send_json(
                        {"ok": False, "error": "Invalid message format"}
                    )
                except zmq.ZMQError:
                    logger.error("ZMQ error on ping socket")
                    break

            if self.socket in events:
                try:
                    message = json.loads(self.socket.recv())
                except (json.JSONDecodeError, UnicodeDecodeError):
                    # MUST send reply before next recv (REP protocol)
                    self.socket.send_json({"ok": False, "error": "Invalid message format"})
                    continue
                except zmq.ZMQError:
                    logger.error("ZMQ error on main socket")
                    break

                if not isinstance(message, dict):
                    self.socket.send_json({"ok": False, "error": "Invalid message format"})
                    continue

                try:
                    response = self.handle_message(message)
                except Exception as e:
                    sentry_sdk.capture_exception(e)
                    logger.error("Unhandled handler error: %s", type(e).__name__)
                    response = {"ok": False, "error": "Internal processing error"}

                self.socket.send_json(response)
        self.close()

    def close(self):
        self.ping_socket.close()
        self.socket.close()
        self.context.term()
