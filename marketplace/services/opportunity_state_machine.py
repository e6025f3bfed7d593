from transitions import MachineError
from transitions.extensions.asyncio import AsyncMachine
from marketplace.core.logging_config import logger
from marketplace.schemas.opportunity import OpportunityStatus


class OpportunityStateMachine:
    states = [status.value for status in OpportunityStatus]

    # Целевой статус -> триггер
    triggers = {
        OpportunityStatus.PUBLISHED: "publish",
        OpportunityStatus.SUSPENDED: "suspend",
        OpportunityStatus.EVALUATION: "close",
        OpportunityStatus.AWARDED: "award",
        OpportunityStatus.CANCELED: "cancel",
    }

    def __init__(self, opportunity_id: str, status: OpportunityStatus):
        self.opportunity_id = opportunity_id
        self.machine = AsyncMachine(
            model=self,
            states=OpportunityStateMachine.states,
            initial=status.value,
            send_event=True
        )

        self.machine.add_transition("publish", ["DRAFT", "SUSPENDED"], "PUBLISHED")
        self.machine.add_transition("suspend", "PUBLISHED", "SUSPENDED")
        self.machine.add_transition("close", "PUBLISHED", "EVALUATION")
        self.machine.add_transition("award", "EVALUATION", "AWARDED")
        self.machine.add_transition("cancel", ["PUBLISHED", "SUSPENDED", "EVALUATION"], "CANCELED")

    async def change_status(self, target: OpportunityStatus) -> bool:
        """Пытается перевести возможность в target. Возвращает False, если переход недопустим."""
        trigger_name = self.triggers.get(target)
        if not trigger_name:
            logger.warning(f"Opportunity {self.opportunity_id}: no transition leads to {target.value}")
            return False
        try:
            return await self.trigger(trigger_name)
        except MachineError as e:
            logger.warning(f"Opportunity {self.opportunity_id}: invalid status change {self.state} -> {target.value}: {e.value}")
            return False

    async def on_enter_PUBLISHED(self, event):
        logger.info(f"Opportunity {self.opportunity_id} entered state PUBLISHED")

    async def on_enter_SUSPENDED(self, event):
        logger.info(f"Opportunity {self.opportunity_id} entered state SUSPENDED")

    async def on_enter_EVALUATION(self, event):
        logger.info(f"Opportunity {self.opportunity_id} entered state EVALUATION")

    async def on_enter_AWARDED(self, event):
        logger.info(f"Opportunity {self.opportunity_id} entered state AWARDED")

    async def on_enter_CANCELED(self, event):
        logger.info(f"Opportunity {self.opportunity_id} entered state CANCELED")


async def is_valid_status_change(opportunity_id: str, current: OpportunityStatus, target: OpportunityStatus) -> bool:
    sm = OpportunityStateMachine(opportunity_id, current)
    return await sm.change_status(target)
