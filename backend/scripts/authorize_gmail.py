"""One-time Gmail OAuth setup: visit a URL, paste the code, store the token.

Run: python backend/scripts/authorize_gmail.py [--backend file|env] [--code CODE]

file  Reads CREDENTIALS_PATH and writes TOKEN_PATH (defaults: credentials.json,
      token.json).
env   Asks for the client secrets JSON, then prints the GMAIL_CREDENTIALS and
      GMAIL_TOKENS values to put in the deployment's configuration. Hosted
      configs only hold strings, so redirect_uris is dropped and the token
      expiry is written as a string.
"""

import argparse
import json
import sys

from app.config import settings
from app.models.gmail import ClientCredentials
from app.services.authorizer import (
    AuthorizationError,
    CodePrompt,
    console_prompt,
    recorded_code_prompt,
    request_new_token,
)
from app.services.token_store import (
    CredentialsError,
    EnvTokenStore,
    FileTokenStore,
    TokenStoreError,
)


def _authorize_file(prompt: CodePrompt) -> None:
    store = FileTokenStore(settings.credentials_path, settings.token_path)
    client = store.read_credentials()
    request_new_token(store, client, prompt)
    print(f"\nToken stored to {settings.token_path}")


def _authorize_env(prompt: CodePrompt) -> None:
    content = input("Enter the JSON client secret content here: ")
    try:
        secrets = json.loads(content)
        ClientCredentials.from_client_secrets(secrets)
    except ValueError as e:
        raise CredentialsError(f"Malformed client secrets: {e}") from e

    for section in ("installed", "web"):
        if isinstance(secrets.get(section), dict):
            secrets[section].pop("redirect_uris", None)

    credentials_json = json.dumps(secrets)
    store = EnvTokenStore(credentials_json)
    request_new_token(store, store.read_credentials(), prompt)

    print("\nSet the following two values before deploying:\n")
    print(f"export {EnvTokenStore.CREDENTIALS_VAR}='{credentials_json}'\n")
    print(f"{store.export_command()}\n")


def main() -> int:
    parser = argparse.ArgumentParser(description="Authorize this app to send mail through Gmail")
    parser.add_argument("--backend", choices=["file", "env"], default=settings.token_backend)
    parser.add_argument("--code", help="authorization code obtained earlier; skips the prompt")
    args = parser.parse_args()

    prompt = recorded_code_prompt(args.code) if args.code else console_prompt
    try:
        if args.backend == "env":
            _authorize_env(prompt)
        else:
            _authorize_file(prompt)
    except (CredentialsError, AuthorizationError, TokenStoreError) as e:
        print(f"\nAuthorization failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
