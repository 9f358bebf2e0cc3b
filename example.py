import asyncio

import fx_radar
from fx_radar import FxRadar

print(fx_radar.__version__)  # 0.1.0

# Default usage: in-memory cache, providers keyed by FX_RADAR_<PROVIDER>_API_KEY
radar = FxRadar()

# Currency mentions, strongest first
for mention in radar.detect("Lunch was $12.50 and the hotel charged 1.234,00 € per night"):
    print(mention.to_dict())
# => {'amount': '12.50', 'currency_code': 'USD', 'format': 'symbolPrefix', ...}


async def main() -> None:
    async with radar:
        # Single conversion
        result = await radar.convert(5000, "USD", "EUR")
        print(result.converted_amount, result.source_label, result.formatted_rate)
        # => 4600.00 EXCHANGERATE_API 1 USD = 0.920000 EUR

        # Best mention of a text converted into several currencies
        best, results = await radar.convert_text("Tickets cost Rs. 2,500", ["USD", "EUR", "GBP"])
        print(best.to_dict() if best else None)
        for outcome in results:
            print(outcome)

        print(radar.orchestrator.stats())
        print(await radar.orchestrator.test_provider("FRANKFURTER"))


asyncio.run(main())
