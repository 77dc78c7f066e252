# steamsalebot

A Telegram bot for Steam players. Its replies are in Russian. It:

- keeps a list of the Steam games each user adds and shows their current store prices,
- rechecks the tracked games against the store every half hour,
- sends the list of Steam's week-long deals once a day, after 10:00 Moscow time,
- announces the seasonal sales listed in `sales.json`: a day before each one starts,
  when it starts, and a day before it ends.

## Installation

```
pip install .
```

## Running

Create a bot with Telegram's BotFather and start it with its token:

```
steamsalebot -token <your bot token>
```

`--token` works as well. Without a token the command logs an error and exits with status 1.

The bot polls Telegram for updates in batches of 100. When polling fails it retries
three times a minute apart, then waits three minutes before trying again.

### Where data is kept

Users and their games are kept as JSON files under `storage/db` in the current
directory. Each user gets a folder holding a `settings` file and a `games` folder
with one file per tracked game.

### Seasonal sales

Sale dates are read from `sales.json` in the current directory: a list of entries
whose times are Moscow wall-clock times in `YYYY-MM-DD HH:MM` form.

```json
[
  {"name": "Summer Sale", "start": "2025-06-26 20:00", "end": "2025-07-10 20:00"}
]
```

Entries with unreadable times are logged and skipped. Sale notices go to every
registered user. Once all notices in the file have been sent, the bot tells its
admin chat that the list should be renewed and the bot restarted, and waits 30 days
before reading the file again.

## Chat commands

| Command     | What it does                                                |
|-------------|-------------------------------------------------------------|
| `/start`    | register, with all notifications switched on                |
| `/help`     | list the commands                                           |
| `/add`      | track a game; the bot then asks for its Steam ID            |
| `/delete`   | stop tracking a game; the bot then asks for its Steam ID    |
| `/my_games` | show the tracked games with their current prices            |
| `/settings` | show the notification switches and offer to change them     |
| `/check`    | show name, description, prices and languages of any game    |
| `/donate`   | how to support the author                                   |

A game's Steam ID is the number in the address of its store page.

`/settings` lists three switches: 1 — seasonal sales, 2 — daily deals, 3 — discounts
on your games. Answer with the numbers to toggle, separated by a comma (at most two,
for example `1,3`), or with `exit` to leave them unchanged.

## Using it as a library

- `steamsalebot.telegram_client.TelegramClient` talks to the Telegram Bot API
  (`updates`, `send_message`) and the Steam store (`game`, `sale`). The response
  parsers `parse_updates`, `parse_game_response` and `parse_games_sale` can be used
  on their own.
- `steamsalebot.file_storage.FileStorage` implements the `steamsalebot.storage.Storage`
  interface on the file layout described above.
- `steamsalebot.commands.CommandHandler` answers chat commands and the replies to its prompts.
- `steamsalebot.processor.TelegramProcessor` turns updates into events, hands them to the
  command handler and runs the notification loops. The helpers `load_sales`,
  `sale_notices`, `format_sale_notice` and `week_sale_message` are public too.
- `steamsalebot.consumer.EventConsumer` starts the notification loops in background
  threads and polls for events forever.

Errors raised by the package are `steamsalebot.errors.BotError` or its subclasses.

```python
from steamsalebot.consumer import EventConsumer
from steamsalebot.file_storage import FileStorage
from steamsalebot.processor import TelegramProcessor
from steamsalebot.telegram_client import TelegramClient

processor = TelegramProcessor(TelegramClient("api.telegram.org", "token"), FileStorage("storage/db"))
EventConsumer(processor, processor, 100).start()
```