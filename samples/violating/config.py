API_KEY = "sk_live_abcdef123456"
