import os

from dotenv import load_dotenv

from blockrun_llm import (
    APIError,
    LLMClient,
    PaymentRejectedError,
    WalletStore,
    format_needs_funding_message,
    format_wallet_created_message,
)

# Load environment variables
load_dotenv()

model = os.getenv("MODEL", "openai/gpt-4o-mini")
prompt = os.getenv("PROMPT", "Say hello in one short sentence.")


def main():
    # Env key first, then ~/.blockrun, otherwise a fresh wallet is created
    wallet = WalletStore().get_or_create()
    if wallet.is_new:
        print(format_wallet_created_message(wallet.address))
        return

    with LLMClient(wallet.private_key) as client:
        print(f"Paying from {client.get_wallet_address()}")
        try:
            reply = client.chat(model, prompt)
        except PaymentRejectedError:
            print(format_needs_funding_message(wallet.address))
            return
        except APIError as e:
            print(f"Error occurred: {e}")
            return

        print(f"Response: {reply}")

        spending = client.get_spending()
        print(f"Spent ${spending.total_usd:.6f} over {spending.calls} paid call(s)")


if __name__ == "__main__":
    main()
