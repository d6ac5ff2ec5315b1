"""Slack integration for the OpenAI translator.

WHY: Translations are requested from Slack (custom workflow functions
or flag reactions) and delivered back into the message's thread. This
package holds the Bolt app that receives those requests and the
MessageStore adapter the flow uses to read and post messages.

HOW: bot.py registers the function and event handlers on a slack-bolt
App and runs it in Socket Mode. store.py wraps the handler's WebClient
behind the MessageStore protocol.

RULES:
- Socket Mode requires SLACK_BOT_TOKEN and SLACK_APP_TOKEN
- Handlers always report through complete()/fail() or the log
"""
