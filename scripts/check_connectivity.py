"""Verify connectivity to Redis, the ingestion bucket and the search APIs."""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from swipenews.config import AppConfig, Secrets, load_config
from swipenews.feed.cache import ArticleCache
from swipenews.providers import create_ingestion_backend, create_search_providers
from swipenews.state.redis_backend import RedisStateBackend


def check_redis(config: AppConfig) -> bool:
    """Verify the Redis state backend answers PING."""
    print("Checking Redis...")
    backend = RedisStateBackend(config.state.namespace)
    try:
        backend.ping()
        print(f"  Seen URLs stored: {len(backend.load_seen())}")
        print("  Redis: OK")
        return True
    except Exception as e:
        print(f"  Redis: FAILED - {e}")
        return False
    finally:
        backend.close()


async def check_ingestion(config: AppConfig) -> bool:
    """Verify the first configured category can be downloaded."""
    category = config.refresh.categories[0]
    print(f"\nChecking ingestion bucket ({category})...")
    client = create_ingestion_backend(config)
    try:
        articles = await client.fetch_category(category)
        print(f"  Fetched {len(articles)} articles")
        if articles:
            print(f"  Latest: {articles[0].title[:80]}...")
        print("  Ingestion: OK")
        return True
    except Exception as e:
        print(f"  Ingestion: FAILED - {e}")
        return False
    finally:
        await client.aclose()


async def check_search(config: AppConfig, secrets: Secrets) -> bool:
    """Run a probe query against every configured network provider."""
    all_ok = True
    try:
        providers = create_search_providers(config, secrets, ArticleCache())
    except ValueError as e:
        print(f"\nSearch providers: FAILED - {e}")
        return False

    for provider in providers:
        if provider.name == "cached":
            continue
        print(f"\nChecking {provider.name} search API...")
        try:
            articles = await provider.search("technology", config.search.language, 3)
            print(f"  Fetched {len(articles)} articles")
            print(f"  {provider.name}: OK")
        except Exception as e:
            print(f"  {provider.name}: FAILED - {e}")
            all_ok = False
        finally:
            await provider.aclose()
    return all_ok


async def run_checks(config: AppConfig, secrets: Secrets) -> list[bool]:
    return [
        check_redis(config),
        await check_ingestion(config),
        await check_search(config, secrets),
    ]


def main():
    print("=" * 50)
    print("SwipeNews - Connectivity Check")
    print("=" * 50)

    config = load_config(Path("config/settings.yaml"))
    try:
        secrets = Secrets()
    except Exception as e:
        print(f"\nFailed to load .env file: {e}")
        print("Make sure .env exists with the API keys of the configured search providers")
        sys.exit(1)

    results = asyncio.run(run_checks(config, secrets))

    print("\n" + "=" * 50)
    if all(results):
        print("All checks passed. Ready to read.")
    else:
        print("Some checks failed. Fix the issues above.")
        sys.exit(1)


if __name__ == "__main__":
    main()
