# messaging/admin.py

from django.contrib import admin

from .models import Conversation, ConversationParticipant, Message


class ParticipantInline(admin.TabularInline):
    model = ConversationParticipant
    extra = 0
    raw_id_fields = ('user',)
    readonly_fields = ('joined_at', 'last_read_at')


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ('id', 'type', 'subject', 'listing', 'status', 'message_count', 'last_message_at')
    list_filter = ('type', 'status')
    search_fields = ('subject', 'memberships__user__email')
    raw_id_fields = ('listing', 'booking', 'last_message_sender')
    inlines = [ParticipantInline]

    actions = ['block_conversations']

    def block_conversations(self, request, queryset):
        updated = queryset.update(status='blocked')
        self.message_user(request, f"🚫 Blocked {updated} conversation(s).")

    block_conversations.short_description = "🚫 Block selected conversations"


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'conversation', 'sender', 'type', 'created_at')
    list_filter = ('type',)
    search_fields = ('content', 'sender__email')
    raw_id_fields = ('conversation', 'sender')
    exclude = ('read_by',)
