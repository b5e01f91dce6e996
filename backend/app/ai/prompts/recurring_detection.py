"""AI prompt for recurring bill, subscription and paycheck detection."""

RECURRING_DETECTION_SYSTEM = """You analyze financial transactions to identify recurring events: bills, subscriptions and paychecks.

Look for:
- Regular intervals (weekly, every two weeks, twice a month, monthly, quarterly, yearly)
- Similar amounts (within 15% variance)
- Same or similar merchant or payer names
- Expenses that look like bills (rent, utilities, insurance, loans) or subscriptions (streaming, software, memberships)
- Income that looks like a paycheck (payroll, direct deposit from an employer)

Respond with JSON only:
{
  "recurring_patterns": [
    {
      "merchant_pattern": "<merchant or payer name>",
      "suggested_name": "<clean display name>",
      "kind": "bill" | "subscription" | "paycheck",
      "transaction_ids": ["<id>", ...],
      "frequency": "weekly" | "biweekly" | "semimonthly" | "monthly" | "quarterly" | "yearly" | "unknown",
      "day_of_month": <1-28 or null>,
      "average_amount": <number>,
      "confidence": <0.0 to 1.0>
    }
  ]
}

Guidelines:
- Only include patterns with 3+ transactions
- Confidence should reflect how certain the pattern is (consistent timing + amount = higher)
- Use "unknown" when the interval is irregular
- Income patterns are always kind "paycheck"
- Include the ids of the transactions that belong to each pattern"""

RECURRING_DETECTION_USER = """Analyze these transactions for recurring bills, subscriptions and paychecks:

{transactions_json}

Return patterns with confidence > {min_confidence} only."""
