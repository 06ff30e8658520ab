#!/usr/bin/env python3
"""Script para probar el gateway X-trafik en ejecución (smoke test)"""
import os
import sys
import httpx
from dotenv import load_dotenv

load_dotenv()

PORT = os.getenv("PORT", "3000")
BASE_URL = os.getenv("GATEWAY_URL", f"http://localhost:{PORT}")
TEST_TICKET_ID = os.getenv("TEST_TICKET_ID", "12156635")

# Colores para output
class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    RESET = '\033[0m'

def print_result(name: str, ok: bool, detail: str = ""):
    color, icon = (Colors.GREEN, "✅") if ok else (Colors.RED, "❌")
    print(f"{color}{icon} {name}{' ' + detail if detail else ''}{Colors.RESET}")

def check_test_connection() -> bool:
    """GET /api/test-connection: 200 o 500, siempre con diagnóstico"""
    name = "GET /api/test-connection"
    try:
        response = httpx.get(f"{BASE_URL}/api/test-connection", timeout=30.0)
    except httpx.RequestError as e:
        print_result(name, False, str(e))
        print(f"\n{Colors.YELLOW}⚠️  ¿Está corriendo el gateway? Inícialo con: python main.py{Colors.RESET}\n")
        sys.exit(1)

    data = response.json()
    ok = response.status_code in (200, 500) and "configuration" in data
    detail = f"({data.get('duration')})" if data.get("success") else data.get("error", "X-trafik no configurado")
    print_result(name, ok, detail)

    configuration = data.get("configuration", {})
    print(f"   baseUrl: {configuration.get('baseUrl', 'NOT SET')}")
    if data.get("result"):
        print(f"   result: {data['result']}")
    return ok

def check_validate_ticket() -> bool:
    """POST /api/validate-ticket con TEST_TICKET_ID"""
    name = "POST /api/validate-ticket"
    try:
        response = httpx.post(
            f"{BASE_URL}/api/validate-ticket",
            json={"ticketId": TEST_TICKET_ID},
            timeout=30.0
        )
    except httpx.RequestError as e:
        print_result(name, False, str(e))
        return False

    data = response.json()
    ok = response.status_code in (200, 404, 500, 502) and "status" in data
    detail = f"status={data.get('status')}"
    if data.get("message"):
        detail += f" - {data['message']}"
    print_result(name, ok, detail)
    return ok

def main():
    print(f"\nProbando gateway X-trafik en {BASE_URL}")
    print(f"Ticket para validate-ticket: {TEST_TICKET_ID}\n")

    results = [check_test_connection(), check_validate_ticket()]

    print("")
    if not all(results):
        print(f"{Colors.YELLOW}Algunas pruebas fallaron. Revisa XTRAFIK_BASE_URL (y certificados) en .env{Colors.RESET}")
        sys.exit(1)

    print(f"{Colors.GREEN}Todas las pruebas pasaron{Colors.RESET}")

if __name__ == "__main__":
    main()
