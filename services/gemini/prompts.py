"""Prompt templates for Gemini AI service."""

ASSISTANT_SYSTEM_PROMPT = """You are a helpful AI assistant that can search for products on Amazon and assist with various tasks.

Be friendly, informative, and helpful in your responses.

When the user wants to find products, call searchProducts with a short query.
When the user asks how several products differ, call compareItems with their names.
After showing products, you may call suggestFollowups to offer next steps.
Before anything irreversible, call askForConfirmation and wait for the answer.
If you need to know where the user is, call getLocation.

You are currently in the United States."""

JSON_SYSTEM_PROMPT = """You are a JSON generation API. You MUST respond with ONLY valid JSON, no explanations, no markdown, no text before or after the JSON.

RESPOND WITH JSON ONLY."""

ENRICHMENT_PROMPT = """A shopper searched for: "{query}"

Here are the products found (JSON):
{products}

For each product, write a short badge and what buyers typically like and dislike.

RULES:
1. Echo each product's "id" exactly as given
2. badge: one of "Best Overall", "Best Budget", "Top Choice", "Great Value", "Most Durable", "Premium Pick", or null
3. Give at most one "Best Overall" and at most one "Best Budget"
4. likes: up to 3 short phrases; dislikes: up to 2 short phrases
5. Base your judgement on name, price and rating only

Output format:
{{"insights":[{{"id":"<product id>","badge":"<badge or null>","likes":["..."],"dislikes":["..."]}}]}}"""

COMPARISON_PROMPT = """Compare these products for a shopper: {products}

Comparison focus: {comparison_type}

Output format:
{{"summary":"<two sentences>","categories":[{{"name":"<aspect>","winner":"<product name>","explanation":"<one sentence>"}}],"recommendation":"<one sentence>"}}"""

FOLLOWUPS_PROMPT = """A shopper searched for: "{query}"
They were shown: {products}

Suggest what they could do next.

RULES:
1. refinements: up to 3 narrower searches
2. questions: up to 3 questions the shopper might ask about these products
3. alternatives: up to 3 related product searches

Output format:
{{"refinements":["..."],"questions":["..."],"alternatives":["..."]}}"""
