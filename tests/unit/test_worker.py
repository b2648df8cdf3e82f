"""
Unit tests for the protocol worker.

Most tests write the whole client side into one end of a socketpair,
close it for writing, then run the worker synchronously on the other
end and inspect everything it replied. The overflow test runs the
worker on a thread so it can read each reply before sending more.
"""

import re
import socket
import threading

import pytest

from apibmon.core.connection import Connection, ConnectionState
from apibmon.protocol import Command, format_percent
from apibmon.worker import ConnectionWorker


PERCENT = re.compile(rb"^\d+\.\d{2}\n$")


def run_session(client_data: bytes, monitor, buffer_size: int = 128):
    """Run a worker over client_data and return (replies, connection)."""
    server_sock, client_sock = socket.socketpair()
    conn = Connection(socket=server_sock, address=("127.0.0.1", 40000), buffer_size=buffer_size)

    client_sock.sendall(client_data)
    client_sock.shutdown(socket.SHUT_WR)

    ConnectionWorker(conn, monitor).run()

    replies = b""
    try:
        while True:
            chunk = client_sock.recv(4096)
            if not chunk:
                break
            replies += chunk
    except ConnectionResetError:
        pass  # closed with unread input still queued
    client_sock.close()
    return replies, conn


class TestCommandParsing:
    """Tests for Command.parse."""

    @pytest.mark.parametrize("line, expected", [
        ("HELLO", Command.HELLO),
        ("hello", Command.HELLO),
        ("Cpu", Command.CPU),
        ("mem", Command.MEM),
        ("bye", Command.BYE),
        ("QuIt", Command.QUIT),
        ("  CPU  ", Command.CPU),
        ("", Command.INVALID),
        ("FOO", Command.INVALID),
        ("HELLO WORLD", Command.INVALID),
    ])
    def test_parse(self, line, expected):
        assert Command.parse(line) is expected

    def test_closing_commands(self):
        assert Command.BYE.closes_connection
        assert Command.QUIT.closes_connection
        assert not Command.HELLO.closes_connection
        assert not Command.INVALID.closes_connection

    def test_format_percent(self):
        assert format_percent(3.14159) == "3.14\n"
        assert format_percent(0) == "0.00\n"
        assert format_percent(100) == "100.00\n"


class TestConnectionWorker:
    """Tests for the per-connection protocol loop."""

    def test_hello(self, fake_monitor):
        replies, conn = run_session(b"HELLO\n", fake_monitor)

        assert replies == b"Hi!\n"
        assert conn.state == ConnectionState.CLOSED

    def test_cpu_any_case(self, fake_monitor):
        replies, _ = run_session(b"cpu\nCPU\nCpU\n", fake_monitor)

        lines = replies.splitlines(keepends=True)
        assert len(lines) == 3
        for line in lines:
            assert PERCENT.match(line)

    def test_cpu_reports_delta_since_last_sample(self, fake_monitor):
        """Baseline at connect, then each CPU moves the baseline forward."""
        replies, _ = run_session(b"CPU\nCPU\n", fake_monitor)

        assert replies == b"25.00\n25.00\n"
        # One baseline sample plus one per CPU command
        assert fake_monitor.samples_taken == 3

    def test_mem(self, fake_monitor):
        replies, _ = run_session(b"MEM\n", fake_monitor)

        assert replies == b"42.50\n"

    def test_invalid_then_valid(self, fake_monitor):
        replies, _ = run_session(b"FOO\nHELLO\n", fake_monitor)

        assert replies == b"Invalid command\nHi!\n"

    def test_empty_line_is_invalid(self, fake_monitor):
        replies, _ = run_session(b"\r\n", fake_monitor)

        assert replies == b"Invalid command\n"

    @pytest.mark.parametrize("command", [b"BYE", b"QUIT", b"bye", b"quit"])
    def test_bye_stops_processing(self, fake_monitor, command):
        """Lines after BYE/QUIT in the same read are never answered."""
        replies, conn = run_session(command + b"\nHELLO\nMEM\n", fake_monitor)

        assert replies == b"BYE\n"
        assert conn.state == ConnectionState.CLOSED

    def test_crlf_commands(self, fake_monitor):
        replies, _ = run_session(b"HELLO\r\nMEM\r\n", fake_monitor)

        assert replies == b"Hi!\n42.50\n"

    def test_overflow_closes_without_reply(self, fake_monitor):
        """Earlier lines are answered, the oversized one is not."""
        server_sock, client_sock = socket.socketpair()
        client_sock.settimeout(5.0)
        conn = Connection(socket=server_sock, address=("127.0.0.1", 40000), buffer_size=32)
        worker = threading.Thread(target=ConnectionWorker(conn, fake_monitor).run, daemon=True)
        worker.start()

        with client_sock:
            client_sock.sendall(b"HELLO\n")
            assert client_sock.recv(4) == b"Hi!\n"

            client_sock.sendall(b"X" * 200 + b"\nHELLO\n")
            worker.join(timeout=5.0)

            rest = b""
            try:
                while True:
                    chunk = client_sock.recv(4096)
                    if not chunk:
                        break
                    rest += chunk
            except ConnectionResetError:
                pass

        assert not worker.is_alive()
        assert rest == b""
        assert conn.state == ConnectionState.CLOSED

    def test_unterminated_command_at_eof_ignored(self, fake_monitor):
        replies, _ = run_session(b"HELLO\nHELLO", fake_monitor)

        assert replies == b"Hi!\n"
