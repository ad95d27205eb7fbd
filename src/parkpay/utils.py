import socket


def join_url_parts(*parts):
    return '/'.join(str(part).strip('/') for part in parts if part != '')


def get_local_ip_address() -> str:
    """Best-effort LAN IPv4 address of this host, 'localhost' when unknown.

    Connecting a UDP socket sends no packets; it only makes the OS pick the
    outbound interface.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(("10.255.255.255", 1))
        address = sock.getsockname()[0]
    except OSError:
        return "localhost"
    finally:
        sock.close()
    if address.startswith("127.") or address == "0.0.0.0":
        return "localhost"
    return address
