# -*- coding: utf-8 -*-
"""English (en) strings."""

LANG = {
    # Registration / help
    "start.welcome": "Welcome! You are now registered to receive payment notifications. Use /help to see available commands.",
    "help.text": (
        "Available commands:\n\n"
        "/start - Register to receive notifications\n"
        "/balance - Check global balance\n"
        "/transactions - View transaction history\n"
        "/cashout - Cash out balance\n"
        "/menu - Show interactive menu\n"
        "/status - View system status\n"
        "\n"
        "Admin commands:\n"
        "/setfee <percentage> - Set cash out fee\n"
        "/notify <user_id> - Add user to notification list\n"
        "/unnotify <user_id> - Remove user from notification list\n"
        "/notificationlist - View notification list\n"
        "\n"
        "IPN Forwarding (admin only):\n"
        "/forward <url> - Add URL to forward IPN to\n"
        "/remove-forward <url or number> - Remove forwarding URL\n"
        "/list-forward - List all forwarding URLs\n"
        "/forward-menu - Manage forwarding URLs via menu"
    ),

    # Bot command descriptions (set_my_commands)
    "commands.start": "Register to receive notifications",
    "commands.help": "Show available commands",
    "commands.menu": "Show interactive menu",
    "commands.balance": "Check global balance",
    "commands.transactions": "View transaction history",
    "commands.cashout": "Cash out balance",
    "commands.status": "View system status",

    # Main menu
    "menu.title": "📱 Main Menu\n\nSelect an option:",
    "menu.balance": "💰 Balance",
    "menu.transactions": "📊 Transactions",
    "menu.cashout": "💸 Cash Out",
    "menu.status": "📋 Status",
    "menu.notifications": "👥 Notification List",

    # Balance / history / status
    "balance.summary": (
        "💰 Balance Summary:\n\n"
        "Total Received: ${received} {currency}\n"
        "Total Cashed Out: ${cashed_out} {currency}\n"
        "Remaining: ${remaining} {currency}"
    ),
    "transactions.empty": "No transactions yet.",
    "transactions.header": "📊 Transaction History:\n\n",
    "transactions.item": "{index}. {gross} {origin_currency} (${amount} {currency})\n   {date}\n   ID: {txn_id}\n\n",
    "status.text": (
        "📊 System Status\n\n"
        "Total Transactions: {count}\n"
        "Total Received: ${received} {currency}\n"
        "Registered Users: {registered}\n"
        "Notification Users: {notified}\n"
        "Cash Out Fee: {fee}%"
    ),

    # Cash out
    "cashout.start_first": "Please use /start first.",
    "cashout.admin_only": "Only admin can cash out.",
    "cashout.no_balance": "No balance available to cash out.",
    "cashout.options": (
        "💸 Cash Out Options\n\n"
        "Available Balance: ${remaining} {currency}\n"
        "Cash Out Fee: {fee}%\n\n"
        "Select an option:"
    ),
    "cashout.btn_all": "Cash Out All",
    "cashout.btn_half": "Cash Out Half",
    "cashout.btn_custom": "Custom Amount",
    "cashout.not_for_you": "This action is not for you.",
    "cashout.enter_amount": "Please enter the amount to cash out (in {currency}):",
    "cashout.invalid_amount": "Invalid amount. Please enter a positive number.",
    "cashout.insufficient": "Insufficient balance. Available: ${remaining} {currency}",
    "cashout.insufficient_short": "Insufficient balance.",
    "cashout.success": (
        "💸 Cash Out Successful\n\n"
        "Amount: ${amount} {currency}\n"
        "Fee ({fee_percent}%): ${fee} {currency}\n"
        "Net: ${net} {currency}\n\n"
        "Remaining Balance: ${remaining} {currency}"
    ),
    "cashout.admin_audit": (
        "💸 Cash out by {principal}\n\n"
        "Amount: ${amount} {currency}\n"
        "Fee ({fee_percent}%): ${fee} {currency}\n"
        "Remaining Balance: ${remaining} {currency}"
    ),

    # Admin denials
    "admin.only_setfee": "Only admin can set cash out fee.",
    "admin.only_notify_add": "Only admin can add users to notification list.",
    "admin.only_notify_remove": "Only admin can remove users from notification list.",
    "admin.only_notify_list": "Only admin can view notification list.",
    "admin.only_forward_add": "Only admin can add forwarding URLs.",
    "admin.only_forward_remove": "Only admin can remove forwarding URLs.",
    "admin.only_forward_list": "Only admin can view forwarding list.",
    "admin.only_forward_clear": "Only admin can clear forwarding URLs.",
    "admin.only_forward_menu": "Only admin can access forward menu.",

    # Fee
    "fee.usage": "Usage: /setfee <percentage>",
    "fee.invalid": "Invalid fee. Please provide a percentage between 0 and 100.",
    "fee.set": "Cash out fee set to {fee}%",

    # Notification list
    "notify.usage": "Usage: /notify <user_id or group chat_id>",
    "unnotify.usage": "Usage: /unnotify <user_id or group chat_id>",
    "notify.invalid_id": "Invalid ID. Please provide a numeric Telegram user or chat ID.",
    "notify.added": "User {principal} added to notification list.",
    "notify.already": "User {principal} is already in the notification list.",
    "notify.removed": "User {principal} removed from notification list.",
    "notify.not_found": "User {principal} is not in the notification list.",
    "notify.list_empty": "No users in notification list.",
    "notify.list_header": "📋 Notification List:\n\n",
    "notify.list_item": "- {principal}\n",

    # Forwarding
    "forward.usage": "Usage: /forward <url>",
    "forward.remove_usage": "Usage: /remove-forward <url or number>",
    "forward.invalid_url": "Invalid URL. Please provide a valid URL including http:// or https://",
    "forward.added": "URL added to forwarding list:\n{url}",
    "forward.already": "URL is already in forwarding list:\n{url}",
    "forward.added_total": "✅ URL added to forwarding list:\n{url}\n\nTotal forwarding URLs: {count}",
    "forward.removed": "URL removed from forwarding list:\n{url}",
    "forward.not_found": "URL not found in forwarding list:\n{url}",
    "forward.removed_total": "✅ URL removed from forwarding list.\n\nRemaining forwarding URLs: {count}",
    "forward.not_found_retry": "❌ URL not found. Please check the number or URL and try again.",
    "forward.list_empty": "No forwarding URLs configured.",
    "forward.list_header": "📤 Forwarding URLs:\n\n",
    "forward.list_item": "{index}. {url}\n",
    "forward.menu_list_header": "Configured forwarding URLs:\n\n",
    "forward.menu": "📤 IPN Forward Management\n\n{listing}\nSelect an option:",
    "forward.enter_url": "Please enter the URL to forward IPN to:\n(e.g., https://example.com/ipn)",
    "forward.select_remove": "Select a URL to remove:\n\n{listing}\nEnter the number or full URL:",
    "forward.cleared": "Cleared {count} forwarding URL(s).",
    "forward.btn_add": "➕ Add Forward URL",
    "forward.btn_remove": "➖ Remove Forward URL",
    "forward.btn_list": "📋 List Forward URLs",
    "forward.btn_clear": "🗑️ Clear All",
    "forward.btn_refresh": "🔄 Refresh",

    # Payment alerts
    "alert.user_payment": (
        "🎉 New payment received!\n\n"
        "Amount: {gross} {origin_currency}\n"
        "{currency}: ${amount}\n"
        "From: {payer}\n"
        "Transaction ID: {txn_id}"
    ),
    "alert.admin_payment": "💰 Payment received:\n\n${amount} {currency} ({gross} {origin_currency})",

    # Errors
    "errors.try_again": "⚠️ Service temporarily unavailable. Please try again later.",
    "errors.generic": "⚠️ An error occurred. Please try again later.",
}
